"""Plain records exchanged between the matching services and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class HealthChecklist:
    no_chronic_illness: bool = False
    no_recent_surgery: bool = False
    eligible_to_donate: bool = False
    notes: str = ""


@dataclass(frozen=True)
class DonorRecord:
    id: str
    owner: str
    name: str
    blood_type: str
    location: str
    contact_info: str
    health_checklist: HealthChecklist = field(default_factory=HealthChecklist)
    availability: bool = True
    donation_history: Tuple[str, ...] = ()

    def summary(self) -> "DonorSummary":
        return DonorSummary(
            donor_id=self.id,
            name=self.name,
            blood_type=self.blood_type,
            location=self.location,
        )


@dataclass(frozen=True)
class BloodRequestRecord:
    id: str
    owner: str
    recipient_name: str
    blood_type: str
    location: str
    urgency: str
    contact_info: str
    units_required: int
    status: str
    time_created: datetime
    status_changed_at: Optional[datetime] = None

    def public_view(self) -> "PublicBloodRequest":
        return PublicBloodRequest(
            id=self.id,
            recipient_name=self.recipient_name,
            blood_type=self.blood_type,
            location=self.location,
            urgency=self.urgency,
            contact_info=self.contact_info,
            status=self.status,
            time_created=self.time_created,
            units_required=self.units_required,
        )


@dataclass(frozen=True)
class DonorInterestRecord:
    request_id: str
    donor_id: str
    timestamp: datetime

    @property
    def key(self) -> Tuple[str, str]:
        return (self.request_id, self.donor_id)


@dataclass(frozen=True)
class MatchRecord:
    request_id: str
    donor_id: str
    confirmed_by: str
    confirmed_at: datetime


@dataclass(frozen=True)
class ProfileRecord:
    principal: str
    name: str
    role: str
    contact_info: str


@dataclass(frozen=True)
class DonorSummary:
    """Donor view that never carries contact details."""

    donor_id: str
    name: str
    blood_type: str
    location: str


@dataclass(frozen=True)
class DonorContactResponse:
    donor_summary: DonorSummary
    contact_info: str


@dataclass(frozen=True)
class PublicBloodRequest:
    """Request view without the owning principal."""

    id: str
    recipient_name: str
    blood_type: str
    location: str
    urgency: str
    contact_info: str
    status: str
    time_created: datetime
    units_required: int


@dataclass(frozen=True)
class MatchSuggestion:
    donor_summary: DonorSummary
    score: int


@dataclass(frozen=True)
class Statistics:
    total_donors: int
    available_donors: int
    total_requests: int
    active_requests: int
    fulfilled_requests: int
    donors_by_blood_type: Dict[str, int]
    requests_by_urgency: Dict[str, int]
