"""UX nudges derived from stored timestamps.

None of these block an operation; views attach them to responses so the
client can warn the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings

from blood.constants import RequestStatus
from blood.services.base import ServiceBase


@dataclass(frozen=True)
class Advisory:
    code: str
    message: str
    until: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "until": self.until.isoformat() if self.until else None,
        }


def _setting(name: str, default: int) -> int:
    return int(getattr(settings, name, default))


class AdvisoryService(ServiceBase):
    def response_cooldown(self, caller: str, now: Optional[datetime] = None) -> Optional[Advisory]:
        """Caller's donors responded to many requests in a short window."""

        now = now or self.clock()
        window = timedelta(seconds=_setting("MATCHING_RESPONSE_COOLDOWN_SECONDS", 300))
        threshold = _setting("MATCHING_RESPONSE_COOLDOWN_THRESHOLD", 5)
        donor_ids = {d.id for d in self.store.donors.scan() if d.owner == caller}
        recent = sorted(
            i.timestamp for i in self.store.interests.scan()
            if i.donor_id in donor_ids and now - window <= i.timestamp <= now
        )
        if len(recent) < threshold:
            return None
        return Advisory(
            code="response_cooldown",
            message="You have responded to several requests in the last few minutes.",
            until=recent[-threshold] + window,
        )

    def duplicate_request_warning(self, caller: str, now: Optional[datetime] = None) -> Optional[Advisory]:
        now = now or self.clock()
        window = timedelta(seconds=_setting("MATCHING_DUPLICATE_REQUEST_WINDOW_SECONDS", 3600))
        recent = [
            r.time_created for r in self.store.requests.scan()
            if r.owner == caller and now - window <= r.time_created <= now
        ]
        if not recent:
            return None
        return Advisory(
            code="duplicate_request",
            message="You already created a blood request within the last hour.",
            until=max(recent) + window,
        )

    def inactive_match(self, request_id: str, now: Optional[datetime] = None) -> Optional[Advisory]:
        """Request still ``matched`` long after the match was confirmed."""

        now = now or self.clock()
        blood_request = self._request(request_id)
        match = self.store.matches.get(request_id)
        if blood_request.status != RequestStatus.MATCHED or match is None:
            return None
        hours = _setting("MATCHING_INACTIVE_MATCH_HOURS", 12)
        if now - match.confirmed_at < timedelta(hours=hours):
            return None
        return Advisory(
            code="inactive_match",
            message=f"This request has been matched for over {hours} hours without being fulfilled.",
        )
