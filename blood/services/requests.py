"""Blood request registry and its status state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, List, Optional

from django.conf import settings

from blood.constants import OPEN_STATUSES, URGENCY_ORDER, RequestStatus, Urgency
from blood.domain import BloodRequestRecord, PublicBloodRequest
from blood.events import RequestCreated
from blood.exceptions import AlreadyRecorded, InvalidInput, InvalidState
from blood.services.access import Action, Resource
from blood.services.base import (
    ServiceBase,
    generate_id,
    require_blood_type,
    require_text,
)

logger = logging.getLogger(__name__)


# Transitions an owner may request directly. donor_contacted and matched are
# reached only through express_interest and confirm_match.
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.SEARCHING, RequestStatus.EXPIRED}),
    RequestStatus.SEARCHING: frozenset({RequestStatus.EXPIRED}),
    RequestStatus.DONOR_CONTACTED: frozenset({RequestStatus.EXPIRED}),
    RequestStatus.MATCHED: frozenset({RequestStatus.FULFILLED}),
}


def max_units() -> int:
    return int(getattr(settings, "MATCHING_MAX_UNITS_PER_REQUEST", 10))


def expiry_days() -> int:
    return int(getattr(settings, "MATCHING_REQUEST_EXPIRY_DAYS", 7))


def require_status(value, field: str = "status") -> str:
    if value not in RequestStatus.values:
        raise InvalidInput(f"{value!r} is not a valid status", field=field)
    return str(value)


def _units(value) -> int:
    if isinstance(value, bool):
        raise InvalidInput("units_required must be a whole number", field="units_required")
    try:
        units = int(value)
    except (TypeError, ValueError):
        raise InvalidInput("units_required must be a whole number", field="units_required") from None
    if isinstance(value, float) and not value.is_integer():
        raise InvalidInput("units_required must be a whole number", field="units_required")
    if units < 1:
        raise InvalidInput("units_required must be at least 1", field="units_required")
    if units > max_units():
        raise InvalidInput(
            f"units_required may not exceed {max_units()}", field="units_required"
        )
    return units


def sort_for_display(requests) -> list:
    """Most urgent first, newest first within the same urgency."""

    newest_first = sorted(requests, key=lambda r: r.time_created, reverse=True)
    return sorted(newest_first, key=lambda r: URGENCY_ORDER.get(r.urgency, len(URGENCY_ORDER)))


class RequestRegistry(ServiceBase):
    def create_request(
        self,
        caller: str,
        request_id: Optional[str],
        recipient_name: str,
        blood_type: str,
        location: str,
        urgency: str,
        contact_info: str,
        units_required: int,
    ) -> BloodRequestRecord:
        self.policy.check(caller, Action.REQUEST_CREATE)
        if urgency not in Urgency.values:
            raise InvalidInput(f"{urgency!r} is not a valid urgency", field="urgency")
        record = BloodRequestRecord(
            id=(request_id or "").strip() or generate_id("req"),
            owner=caller,
            recipient_name=require_text(recipient_name, "recipient_name"),
            blood_type=require_blood_type(blood_type),
            location=require_text(location, "location"),
            urgency=str(urgency),
            contact_info=require_text(contact_info, "contact_info"),
            units_required=_units(units_required),
            status=RequestStatus.PENDING.value,
            time_created=self.clock(),
        )
        with self.store.atomic():
            if self.store.requests.get(record.id, for_update=True) is not None:
                raise AlreadyRecorded(f"Blood request {record.id} already exists")
            self.store.requests.put(record)
            self.events.publish(
                RequestCreated(
                    request_id=record.id,
                    owner=record.owner,
                    blood_type=record.blood_type,
                    location=record.location,
                    urgency=record.urgency,
                    units_required=record.units_required,
                )
            )
        logger.info(
            "Request %s created by %s (%s, %s units, %s)",
            record.id,
            caller,
            record.blood_type,
            record.units_required,
            record.urgency,
        )
        return record

    def update_status(self, caller: str, request_id: str, new_status: str) -> BloodRequestRecord:
        with self.store.atomic():
            blood_request = self._request(request_id, for_update=True)
            self.policy.check(caller, Action.REQUEST_UPDATE_STATUS, Resource(owner=blood_request.owner))
            new_status = require_status(new_status)
            if new_status not in TRANSITIONS.get(blood_request.status, frozenset()):
                raise InvalidState(
                    f"Cannot move request {request_id} from {blood_request.status} to {new_status}"
                )
            return self._transition(blood_request, new_status, caller)

    def override_status(
        self, caller: str, request_id: str, new_status: str, reason: str = ""
    ) -> BloodRequestRecord:
        """Admin escape hatch: set any status, bypassing the transition table."""

        with self.store.atomic():
            blood_request = self._request(request_id, for_update=True)
            self.policy.check(caller, Action.REQUEST_OVERRIDE_STATUS, Resource(owner=blood_request.owner))
            new_status = require_status(new_status)
            if new_status == blood_request.status:
                return blood_request
            logger.warning(
                "Admin %s overriding request %s status %s -> %s: %s",
                caller,
                request_id,
                blood_request.status,
                new_status,
                reason or "no reason given",
            )
            return self._transition(blood_request, new_status, caller, reason=reason or "override")

    def get_request(self, caller: str, request_id: str) -> BloodRequestRecord:
        blood_request = self._request(request_id)
        self.policy.check(caller, Action.REQUEST_READ, self._request_resource(blood_request))
        return blood_request

    def get_all_public_requests(self, caller: str) -> List[PublicBloodRequest]:
        self.policy.check(caller, Action.REQUEST_LIST_PUBLIC)
        return [r.public_view() for r in sort_for_display(self.store.requests.scan())]

    def get_requests_by_status(self, caller: str, status: str) -> List[PublicBloodRequest]:
        self.policy.check(caller, Action.REQUEST_LIST_PUBLIC)
        status = require_status(status)
        matching = [r for r in self.store.requests.scan() if r.status == status]
        matching.sort(key=lambda r: r.time_created, reverse=True)
        return [r.public_view() for r in matching]

    def list_requests_for_owner(self, caller: str) -> List[BloodRequestRecord]:
        self.policy.check(caller, Action.REQUEST_READ, Resource(owner=caller))
        owned = [r for r in self.store.requests.scan() if r.owner == caller]
        owned.sort(key=lambda r: r.time_created, reverse=True)
        return owned

    def stale_requests(self, now: Optional[datetime] = None, days: Optional[int] = None) -> List[BloodRequestRecord]:
        cutoff = (now or self.clock()) - timedelta(days=expiry_days() if days is None else days)
        return [
            r for r in self.store.requests.scan()
            if r.status in OPEN_STATUSES and r.time_created < cutoff
        ]

    def expire_stale_requests(self, now: Optional[datetime] = None, days: Optional[int] = None) -> List[str]:
        """Move open requests older than the expiry window to ``expired``.

        Runs without a caller (scheduler/command); returns the expired ids.
        """

        now = now or self.clock()
        expired = []
        for candidate in self.stale_requests(now, days):
            with self.store.atomic():
                blood_request = self.store.requests.get(candidate.id, for_update=True)
                if blood_request is None or blood_request.status not in OPEN_STATUSES:
                    continue
                self._transition(blood_request, RequestStatus.EXPIRED, None, reason="stale")
            expired.append(candidate.id)
        if expired:
            logger.info("Expired %d stale request(s)", len(expired))
        return expired

