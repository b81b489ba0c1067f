"""Keyed storage used by the matching services.

Services only ever see the abstract ``Store``; ``DjangoStore`` backs it with the
ORM and ``blood.services.memory.MemoryStore`` with plain dictionaries.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ContextManager, Iterator, List, Optional, Tuple

from django.contrib.auth.models import User
from django.db import IntegrityError, transaction
from django.utils import timezone

from blood import models as bmodels
from blood.domain import (
    BloodRequestRecord,
    DonorInterestRecord,
    DonorRecord,
    HealthChecklist,
    MatchRecord,
    ProfileRecord,
)
from donor import models as dmodels
from profiles import models as pmodels

logger = logging.getLogger(__name__)


class DonorRepository(ABC):
    @abstractmethod
    def get(self, donor_id: str, *, for_update: bool = False) -> Optional[DonorRecord]: ...

    @abstractmethod
    def put(self, donor: DonorRecord) -> None: ...

    @abstractmethod
    def insert_if_absent(self, donor: DonorRecord) -> bool:
        """Create ``donor`` unless its id is taken; False when it was."""

    @abstractmethod
    def lock_owner(self, owner: str) -> None:
        """Serialise donor creation by ``owner`` until the transaction ends."""

    @abstractmethod
    def scan(self) -> Iterator[DonorRecord]: ...


class RequestRepository(ABC):
    @abstractmethod
    def get(self, request_id: str, *, for_update: bool = False) -> Optional[BloodRequestRecord]: ...

    @abstractmethod
    def put(self, blood_request: BloodRequestRecord) -> None: ...

    @abstractmethod
    def scan(self) -> Iterator[BloodRequestRecord]: ...


class InterestRepository(ABC):
    @abstractmethod
    def get(self, key: Tuple[str, str]) -> Optional[DonorInterestRecord]: ...

    @abstractmethod
    def insert_if_absent(self, interest: DonorInterestRecord) -> bool:
        """Store ``interest`` unless its (request, donor) key exists. True when stored."""

    @abstractmethod
    def exists(self, request_id: str, donor_id: str) -> bool: ...

    @abstractmethod
    def for_request(self, request_id: str) -> List[DonorInterestRecord]:
        """Interests for one request, ordered by request id then donor id."""

    @abstractmethod
    def scan(self) -> Iterator[DonorInterestRecord]: ...


class MatchRepository(ABC):
    @abstractmethod
    def get(self, request_id: str) -> Optional[MatchRecord]: ...

    @abstractmethod
    def insert_if_absent(self, match: MatchRecord) -> bool: ...

    @abstractmethod
    def scan(self) -> Iterator[MatchRecord]: ...


class ProfileRepository(ABC):
    @abstractmethod
    def get(self, principal: str) -> Optional[ProfileRecord]: ...

    @abstractmethod
    def put(self, profile: ProfileRecord) -> None: ...


class Store(ABC):
    donors: DonorRepository
    requests: RequestRepository
    interests: InterestRepository
    matches: MatchRepository
    profiles: ProfileRepository

    @abstractmethod
    def atomic(self) -> ContextManager:
        """Serialise one read-modify-write unit against this store."""


# ---------------------------------------------------------------------------
# Django ORM implementation
# ---------------------------------------------------------------------------

def _donor_record(row: dmodels.Donor) -> DonorRecord:
    return DonorRecord(
        id=row.donor_id,
        owner=row.owner,
        name=row.name,
        blood_type=row.bloodgroup,
        location=row.location,
        contact_info=row.contact_info,
        health_checklist=HealthChecklist(
            no_chronic_illness=row.no_chronic_illness,
            no_recent_surgery=row.no_recent_surgery,
            eligible_to_donate=row.eligible_to_donate,
            notes=row.health_notes,
        ),
        availability=row.is_available,
        donation_history=tuple(row.donation_history or ()),
    )


def _request_record(row: bmodels.BloodRequest) -> BloodRequestRecord:
    return BloodRequestRecord(
        id=row.request_id,
        owner=row.owner,
        recipient_name=row.recipient_name,
        blood_type=row.bloodgroup,
        location=row.location,
        urgency=row.urgency,
        contact_info=row.contact_info,
        units_required=row.units_required,
        status=row.status,
        time_created=row.time_created,
        status_changed_at=row.status_changed_at,
    )


def _interest_record(row: bmodels.DonorInterest) -> DonorInterestRecord:
    return DonorInterestRecord(
        request_id=row.blood_request.request_id,
        donor_id=row.donor.donor_id,
        timestamp=row.timestamp,
    )


def _match_record(row: bmodels.MatchConfirmation) -> MatchRecord:
    return MatchRecord(
        request_id=row.blood_request.request_id,
        donor_id=row.donor.donor_id,
        confirmed_by=row.confirmed_by,
        confirmed_at=row.confirmed_at,
    )


class DjangoDonorRepository(DonorRepository):
    def get(self, donor_id, *, for_update=False):
        qs = dmodels.Donor.objects.all()
        if for_update:
            qs = qs.select_for_update()
        row = qs.filter(donor_id=donor_id).first()
        return _donor_record(row) if row else None

    def _fields(self, donor):
        checklist = donor.health_checklist
        return {
            "owner": donor.owner,
            "name": donor.name,
            "bloodgroup": donor.blood_type,
            "location": donor.location,
            "contact_info": donor.contact_info,
            "no_chronic_illness": checklist.no_chronic_illness,
            "no_recent_surgery": checklist.no_recent_surgery,
            "eligible_to_donate": checklist.eligible_to_donate,
            "health_notes": checklist.notes,
            "is_available": donor.availability,
            "donation_history": list(donor.donation_history),
        }

    def put(self, donor):
        defaults = self._fields(donor)
        previous = dmodels.Donor.objects.filter(donor_id=donor.id).values_list("is_available", flat=True).first()
        if previous is None or previous != donor.availability:
            defaults["availability_updated_at"] = timezone.now()
        dmodels.Donor.objects.update_or_create(donor_id=donor.id, defaults=defaults)

    def insert_if_absent(self, donor):
        try:
            with transaction.atomic():
                dmodels.Donor.objects.create(
                    donor_id=donor.id,
                    availability_updated_at=timezone.now(),
                    **self._fields(donor),
                )
        except IntegrityError:
            logger.info("Donor %s already exists", donor.id)
            return False
        return True

    def lock_owner(self, owner):
        # Locks the owner's account row; principals without one have nothing to lock.
        list(User.objects.select_for_update().filter(username=owner).values_list("pk", flat=True))

    def scan(self):
        for row in dmodels.Donor.objects.order_by("id").iterator():
            yield _donor_record(row)


class DjangoRequestRepository(RequestRepository):
    def get(self, request_id, *, for_update=False):
        qs = bmodels.BloodRequest.objects.all()
        if for_update:
            qs = qs.select_for_update()
        row = qs.filter(request_id=request_id).first()
        return _request_record(row) if row else None

    def put(self, blood_request):
        bmodels.BloodRequest.objects.update_or_create(
            request_id=blood_request.id,
            defaults={
                "owner": blood_request.owner,
                "recipient_name": blood_request.recipient_name,
                "bloodgroup": blood_request.blood_type,
                "location": blood_request.location,
                "urgency": blood_request.urgency,
                "contact_info": blood_request.contact_info,
                "units_required": blood_request.units_required,
                "status": blood_request.status,
                "time_created": blood_request.time_created,
                "status_changed_at": blood_request.status_changed_at,
            },
        )

    def scan(self):
        for row in bmodels.BloodRequest.objects.order_by("id").iterator():
            yield _request_record(row)


class DjangoInterestRepository(InterestRepository):
    def _queryset(self):
        return bmodels.DonorInterest.objects.select_related("blood_request", "donor").order_by(
            "blood_request__request_id", "donor__donor_id"
        )

    def get(self, key):
        request_id, donor_id = key
        row = self._queryset().filter(
            blood_request__request_id=request_id, donor__donor_id=donor_id
        ).first()
        return _interest_record(row) if row else None

    def insert_if_absent(self, interest):
        blood_request = bmodels.BloodRequest.objects.get(request_id=interest.request_id)
        donor = dmodels.Donor.objects.get(donor_id=interest.donor_id)
        try:
            with transaction.atomic():
                bmodels.DonorInterest.objects.create(
                    blood_request=blood_request,
                    donor=donor,
                    timestamp=interest.timestamp,
                )
        except IntegrityError:
            logger.info(
                "Interest for request %s by donor %s already exists",
                interest.request_id,
                interest.donor_id,
            )
            return False
        return True

    def exists(self, request_id, donor_id):
        return bmodels.DonorInterest.objects.filter(
            blood_request__request_id=request_id, donor__donor_id=donor_id
        ).exists()

    def for_request(self, request_id):
        return [
            _interest_record(row)
            for row in self._queryset().filter(blood_request__request_id=request_id)
        ]

    def scan(self):
        for row in self._queryset():
            yield _interest_record(row)


class DjangoMatchRepository(MatchRepository):
    def get(self, request_id):
        row = (
            bmodels.MatchConfirmation.objects.select_related("blood_request", "donor")
            .filter(blood_request__request_id=request_id)
            .first()
        )
        return _match_record(row) if row else None

    def insert_if_absent(self, match):
        blood_request = bmodels.BloodRequest.objects.get(request_id=match.request_id)
        donor = dmodels.Donor.objects.get(donor_id=match.donor_id)
        try:
            with transaction.atomic():
                bmodels.MatchConfirmation.objects.create(
                    blood_request=blood_request,
                    donor=donor,
                    confirmed_by=match.confirmed_by,
                    confirmed_at=match.confirmed_at,
                )
        except IntegrityError:
            return False
        return True

    def scan(self):
        rows = bmodels.MatchConfirmation.objects.select_related("blood_request", "donor").order_by(
            "blood_request__request_id", "donor__donor_id"
        )
        for row in rows:
            yield _match_record(row)


class DjangoProfileRepository(ProfileRepository):
    def get(self, principal):
        row = pmodels.UserProfile.objects.filter(principal=principal).first()
        if row is None:
            return None
        return ProfileRecord(
            principal=row.principal,
            name=row.name,
            role=row.role,
            contact_info=row.contact_info,
        )

    def put(self, profile):
        pmodels.UserProfile.objects.update_or_create(
            principal=profile.principal,
            defaults={
                "name": profile.name,
                "role": profile.role,
                "contact_info": profile.contact_info,
            },
        )


class DjangoStore(Store):
    def __init__(self):
        self.donors = DjangoDonorRepository()
        self.requests = DjangoRequestRepository()
        self.interests = DjangoInterestRepository()
        self.matches = DjangoMatchRepository()
        self.profiles = DjangoProfileRepository()

    def atomic(self):
        return transaction.atomic()
