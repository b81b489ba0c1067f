"""Shared fixtures for the matching service tests."""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from blood.events import RecordingEventSink
from blood.services import build_services
from blood.services.access import StaticAccessControl
from blood.services.memory import MemoryStore

ADMIN = "admin"
REQUESTER = "rita"
DONOR_OWNER = "dan"
OTHER_DONOR_OWNER = "olga"
STRANGER = "sam"


class FrozenClock:
    def __init__(self, start=None):
        self.now = start or datetime(2025, 3, 1, 9, 0, tzinfo=dt_timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


class ServiceTestCase(SimpleTestCase):
    """In-memory store, fixed principals and a controllable clock."""

    def setUp(self):
        self.clock = FrozenClock()
        self.events = RecordingEventSink()
        self.access = StaticAccessControl(
            admins=[ADMIN],
            users=[REQUESTER, DONOR_OWNER, OTHER_DONOR_OWNER, STRANGER],
        )
        self.store = MemoryStore()
        self.services = build_services(self.store, self.access, self.events, self.clock)

    def make_donor(self, owner=DONOR_OWNER, donor_id=None, blood_type="O-", location="Springfield", **kwargs):
        kwargs.setdefault("name", f"{owner.title()} Donor")
        kwargs.setdefault("contact_info", f"{owner}@example.org")
        return self.services.donors.create_or_update_donor(
            owner,
            donor_id or f"donor-{owner}",
            kwargs.pop("name"),
            blood_type,
            location,
            kwargs.pop("contact_info"),
            **kwargs,
        )

    def make_request(self, owner=REQUESTER, request_id="req-1", blood_type="A+", location="Springfield",
                     urgency="urgent", units=2, searching=False):
        record = self.services.requests.create_request(
            owner, request_id, "Pat Recipient", blood_type, location, urgency, "555-0100", units
        )
        if searching:
            record = self.services.requests.update_status(owner, record.id, "searching")
        return record
