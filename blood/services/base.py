"""Plumbing shared by the matching services."""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from django.utils import timezone

from blood.domain import BloodRequestRecord, DonorRecord
from blood.events import EventSink, RecordingEventSink, StatusChanged
from blood.exceptions import InvalidInput, NotFound
from blood.services.access import AccessPolicy, Resource
from blood.services.compatibility import is_valid_blood_type
from blood.services.store import Store

logger = logging.getLogger(__name__)


def locations_match(left: str, right: str) -> bool:
    """Locations are free text; compare them trimmed and case-insensitively."""

    return (left or "").strip().casefold() == (right or "").strip().casefold()


def generate_id(prefix: str) -> str:
    """Time-ordered opaque id, e.g. ``req-1718000000000-3f9a1c2b``."""

    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def require_text(value, field: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise InvalidInput(f"{field} is required", field=field)
    return text


def require_blood_type(value, field: str = "blood_type") -> str:
    if not is_valid_blood_type(value):
        raise InvalidInput(f"{value!r} is not a valid blood type", field=field)
    return str(value)


class ServiceBase:
    def __init__(
        self,
        store: Store,
        policy: AccessPolicy,
        events: Optional[EventSink] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.policy = policy
        self.events = events if events is not None else RecordingEventSink()
        self.clock = clock or timezone.now

    def _donor(self, donor_id: str, *, for_update: bool = False) -> DonorRecord:
        donor = self.store.donors.get(donor_id, for_update=for_update)
        if donor is None:
            raise NotFound(f"Donor {donor_id} not found")
        return donor

    def _request(self, request_id: str, *, for_update: bool = False) -> BloodRequestRecord:
        blood_request = self.store.requests.get(request_id, for_update=for_update)
        if blood_request is None:
            raise NotFound(f"Blood request {request_id} not found")
        return blood_request

    def _transition(
        self,
        blood_request: BloodRequestRecord,
        new_status: str,
        actor: Optional[str],
        reason: str = "",
    ) -> BloodRequestRecord:
        """Persist a status change and announce it. Caller holds the store's atomic block."""

        updated = replace(blood_request, status=str(new_status), status_changed_at=self.clock())
        self.store.requests.put(updated)
        logger.info(
            "Request %s moved %s -> %s (actor=%s)",
            blood_request.id,
            blood_request.status,
            updated.status,
            actor or "system",
        )
        self.events.publish(
            StatusChanged(
                request_id=blood_request.id,
                old_status=str(blood_request.status),
                new_status=updated.status,
                actor=actor,
                reason=reason,
            )
        )
        return updated

    def _request_resource(self, blood_request: BloodRequestRecord) -> Resource:
        """Owner plus the owners of donors that expressed interest."""

        participants = set()
        for interest in self.store.interests.for_request(blood_request.id):
            donor = self.store.donors.get(interest.donor_id)
            if donor is not None:
                participants.add(donor.owner)
        return Resource(owner=blood_request.owner, participants=frozenset(participants))
