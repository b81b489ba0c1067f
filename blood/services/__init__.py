"""Matching core.

``build_services`` wires every service to one store, policy and event sink;
``get_services`` does so for the Django-backed deployment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from blood.events import EventSink, RecordingEventSink
from blood.services.access import AccessControl, AccessPolicy
from blood.services.advisories import AdvisoryService
from blood.services.donors import DonorRegistry
from blood.services.interests import InterestLedger
from blood.services.matching import MatchService
from blood.services.profiles import ProfileService
from blood.services.queries import QueryService
from blood.services.requests import RequestRegistry
from blood.services.store import Store


@dataclass(frozen=True)
class Services:
    store: Store
    policy: AccessPolicy
    donors: DonorRegistry
    requests: RequestRegistry
    interests: InterestLedger
    matches: MatchService
    queries: QueryService
    profiles: ProfileService
    advisories: AdvisoryService


def build_services(
    store: Store,
    access: AccessControl,
    events: Optional[EventSink] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Services:
    policy = AccessPolicy(access)
    if events is None:
        events = RecordingEventSink()
    kwargs = dict(store=store, policy=policy, events=events, clock=clock)
    return Services(
        store=store,
        policy=policy,
        donors=DonorRegistry(**kwargs),
        requests=RequestRegistry(**kwargs),
        interests=InterestLedger(**kwargs),
        matches=MatchService(**kwargs),
        queries=QueryService(**kwargs),
        profiles=ProfileService(**kwargs),
        advisories=AdvisoryService(**kwargs),
    )


def get_services() -> Services:
    from blood.events import SignalEventSink
    from blood.services.access import DjangoAccessControl
    from blood.services.store import DjangoStore

    return build_services(DjangoStore(), DjangoAccessControl(), SignalEventSink())
