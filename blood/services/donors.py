"""Donor registry: one profile per owning principal, upserted in place."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Mapping, Optional, Union

from blood.domain import DonorRecord, HealthChecklist
from blood.events import DonorRegistered
from blood.exceptions import AlreadyRecorded, InvalidInput
from blood.services.access import Action, Resource
from blood.services.base import (
    ServiceBase,
    generate_id,
    require_blood_type,
    require_text,
)
from blood.services.compatibility import compatible_donor_types

logger = logging.getLogger(__name__)


def _by_name(donors) -> List[DonorRecord]:
    return sorted(donors, key=lambda d: (d.name.casefold(), d.id))


def _checklist(value: Union[HealthChecklist, Mapping, None]) -> HealthChecklist:
    if value is None:
        return HealthChecklist()
    if isinstance(value, HealthChecklist):
        return value
    if isinstance(value, Mapping):
        return HealthChecklist(
            no_chronic_illness=bool(value.get("no_chronic_illness", False)),
            no_recent_surgery=bool(value.get("no_recent_surgery", False)),
            eligible_to_donate=bool(value.get("eligible_to_donate", False)),
            notes=str(value.get("notes") or ""),
        )
    raise InvalidInput("health_checklist must be a mapping", field="health_checklist")


class DonorRegistry(ServiceBase):
    def create_or_update_donor(
        self,
        caller: str,
        donor_id: Optional[str],
        name: str,
        blood_type: str,
        location: str,
        contact_info: str,
        health_checklist: Union[HealthChecklist, Mapping, None] = None,
        availability: bool = True,
    ) -> DonorRecord:
        """Register a donor or overwrite an existing one.

        An existing record keeps its owner and donation history; everything
        else is replaced. Blank ``name``/``contact_info`` fall back to the
        caller's profile when creating.
        """

        donor_id = (donor_id or "").strip() or generate_id("donor")
        with self.store.atomic():
            self.store.donors.lock_owner(caller)
            existing = self.store.donors.get(donor_id, for_update=True)
            self.policy.check(
                caller,
                Action.DONOR_WRITE,
                Resource(owner=existing.owner if existing else None),
            )

            if existing is None and (not name or not contact_info):
                profile = self.store.profiles.get(caller)
                if profile is not None:
                    name = name or profile.name
                    contact_info = contact_info or profile.contact_info

            record = DonorRecord(
                id=donor_id,
                owner=existing.owner if existing else caller,
                name=require_text(name, "name"),
                blood_type=require_blood_type(blood_type),
                location=require_text(location, "location"),
                contact_info=require_text(contact_info, "contact_info"),
                health_checklist=_checklist(health_checklist),
                availability=bool(availability),
                donation_history=existing.donation_history if existing else (),
            )

            if existing is None and not self.policy.is_admin(caller):
                owned = next(
                    (d for d in self.store.donors.scan() if d.owner == caller and d.id != donor_id),
                    None,
                )
                if owned is not None:
                    raise AlreadyRecorded(f"{caller} already has donor profile {owned.id}")

            if existing is not None:
                self.store.donors.put(record)
            elif not self.store.donors.insert_if_absent(record):
                # Created by someone else since the read above; their owner stands.
                existing = self.store.donors.get(donor_id, for_update=True)
                self.policy.check(caller, Action.DONOR_WRITE, Resource(owner=existing.owner))
                record = replace(
                    record, owner=existing.owner, donation_history=existing.donation_history
                )
                self.store.donors.put(record)
            self.events.publish(
                DonorRegistered(
                    donor_id=record.id,
                    owner=record.owner,
                    blood_type=record.blood_type,
                    location=record.location,
                    created=existing is None,
                )
            )
        logger.info("Donor %s %s by %s", record.id, "updated" if existing else "registered", caller)
        return record

    def get_donor(self, caller: str, donor_id: str) -> DonorRecord:
        donor = self._donor(donor_id)
        self.policy.check(caller, Action.DONOR_READ, Resource(owner=donor.owner))
        return donor

    def my_donor(self, caller: str) -> Optional[DonorRecord]:
        """The caller's own donor profile, if they registered one."""

        self.policy.check(caller, Action.DONOR_READ, Resource(owner=caller))
        return next((d for d in self.store.donors.scan() if d.owner == caller), None)

    def get_all_donors(self, caller: str) -> List[DonorRecord]:
        self.policy.check(caller, Action.DONOR_LIST)
        return _by_name(self.store.donors.scan())

    def update_availability(self, caller: str, donor_id: str, available: bool) -> DonorRecord:
        if not isinstance(available, bool):
            raise InvalidInput("available must be true or false", field="available")
        with self.store.atomic():
            donor = self._donor(donor_id, for_update=True)
            self.policy.check(caller, Action.DONOR_WRITE, Resource(owner=donor.owner))
            if donor.availability == available:
                return donor
            donor = replace(donor, availability=available)
            self.store.donors.put(donor)
        logger.info("Donor %s availability set to %s", donor_id, available)
        return donor

    def get_donors_by_blood_type(self, caller: str, blood_type: str) -> List[DonorRecord]:
        self.policy.check(caller, Action.DONOR_LIST)
        blood_type = require_blood_type(blood_type)
        return _by_name(d for d in self.store.donors.scan() if d.blood_type == blood_type)

    def get_donors_by_availability(self, caller: str, available: bool) -> List[DonorRecord]:
        self.policy.check(caller, Action.DONOR_LIST)
        return _by_name(d for d in self.store.donors.scan() if d.availability == bool(available))

    def find_compatible_donors(self, caller: str, recipient_type: str) -> List[DonorRecord]:
        """Donors whose type can give to ``recipient_type`` under the full chart."""

        self.policy.check(caller, Action.DONOR_LIST)
        donor_types = compatible_donor_types(require_blood_type(recipient_type))
        return _by_name(d for d in self.store.donors.scan() if d.blood_type in donor_types)

    def record_donation(self, caller: str, donor_id: str, reference: str) -> DonorRecord:
        reference = require_text(reference, "reference")
        with self.store.atomic():
            donor = self._donor(donor_id, for_update=True)
            self.policy.check(caller, Action.DONOR_RECORD_DONATION, Resource(owner=donor.owner))
            donor = replace(donor, donation_history=donor.donation_history + (reference,))
            self.store.donors.put(donor)
        logger.info("Recorded donation %s for donor %s", reference, donor_id)
        return donor
