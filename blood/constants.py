from django.db import models


class BloodType(models.TextChoices):
    O_NEGATIVE = "O-", "O-"
    O_POSITIVE = "O+", "O+"
    A_NEGATIVE = "A-", "A-"
    A_POSITIVE = "A+", "A+"
    B_NEGATIVE = "B-", "B-"
    B_POSITIVE = "B+", "B+"
    AB_NEGATIVE = "AB-", "AB-"
    AB_POSITIVE = "AB+", "AB+"


class RequestStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SEARCHING = "searching", "Searching"
    DONOR_CONTACTED = "donor_contacted", "Donor Contacted"
    MATCHED = "matched", "Matched"
    FULFILLED = "fulfilled", "Fulfilled"
    EXPIRED = "expired", "Expired"


class Urgency(models.TextChoices):
    CRITICAL = "critical", "Critical"
    URGENT = "urgent", "Urgent"
    MODERATE = "moderate", "Moderate"


class UserRole(models.TextChoices):
    REQUESTER = "requester", "Requester"
    DONOR = "donor", "Donor"
    BOTH = "both", "Both"


TERMINAL_STATUSES = frozenset({RequestStatus.FULFILLED, RequestStatus.EXPIRED})

# Requests a donor can still help with.
OPEN_STATUSES = frozenset({
    RequestStatus.PENDING,
    RequestStatus.SEARCHING,
    RequestStatus.DONOR_CONTACTED,
})

URGENCY_ORDER = {
    Urgency.CRITICAL: 0,
    Urgency.URGENT: 1,
    Urgency.MODERATE: 2,
}
