"""Domain events emitted by the matching services.

The services only decide that something happened; ``SignalEventSink`` turns
each event into a Django signal once the surrounding transaction commits, and
``blood.signals`` hands them to Celery for delivery.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import django.dispatch
from django.db import transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DonorRegistered:
    donor_id: str
    owner: str
    blood_type: str
    location: str
    created: bool


@dataclass(frozen=True)
class RequestCreated:
    request_id: str
    owner: str
    blood_type: str
    location: str
    urgency: str
    units_required: int


@dataclass(frozen=True)
class InterestExpressed:
    request_id: str
    donor_id: str
    status_changed: bool


@dataclass(frozen=True)
class MatchConfirmed:
    request_id: str
    donor_id: str
    confirmed_by: str


@dataclass(frozen=True)
class StatusChanged:
    request_id: str
    old_status: str
    new_status: str
    actor: Optional[str]
    reason: str = ""


donor_registered = django.dispatch.Signal()
request_created = django.dispatch.Signal()
interest_expressed = django.dispatch.Signal()
match_confirmed = django.dispatch.Signal()
status_changed = django.dispatch.Signal()

SIGNALS = {
    DonorRegistered: donor_registered,
    RequestCreated: request_created,
    InterestExpressed: interest_expressed,
    MatchConfirmed: match_confirmed,
    StatusChanged: status_changed,
}


class EventSink:
    def publish(self, event) -> None:
        raise NotImplementedError


class RecordingEventSink(EventSink):
    """Keeps events in memory, in publish order."""

    def __init__(self):
        self.events: List[object] = []

    def publish(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()


class SignalEventSink(EventSink):
    def publish(self, event) -> None:
        signal = SIGNALS.get(type(event))
        if signal is None:
            logger.warning("No signal registered for event %s", type(event).__name__)
            return
        transaction.on_commit(lambda: signal.send(sender=type(event), event=event))
