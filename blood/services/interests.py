"""Donor interest ledger.

At most one interest per (request, donor). The first interest on a
``searching`` request moves it to ``donor_contacted`` inside the same atomic
unit as the insert, so racing donors cannot both trigger the transition.
"""

from __future__ import annotations

import logging
from typing import List

from blood.constants import RequestStatus, TERMINAL_STATUSES
from blood.domain import DonorInterestRecord, DonorSummary
from blood.events import InterestExpressed
from blood.exceptions import AlreadyRecorded, InvalidState
from blood.services.access import Action, Resource
from blood.services.base import ServiceBase

logger = logging.getLogger(__name__)


class InterestLedger(ServiceBase):
    def express_interest(self, caller: str, request_id: str, donor_id: str) -> DonorInterestRecord:
        with self.store.atomic():
            donor = self._donor(donor_id)
            self.policy.check(caller, Action.INTEREST_EXPRESS, Resource(owner=donor.owner))
            blood_request = self._request(request_id, for_update=True)
            if blood_request.status in TERMINAL_STATUSES or blood_request.status == RequestStatus.MATCHED:
                raise InvalidState(
                    f"Request {request_id} is {blood_request.status} and no longer takes responses"
                )

            interest = DonorInterestRecord(
                request_id=request_id, donor_id=donor_id, timestamp=self.clock()
            )
            if not self.store.interests.insert_if_absent(interest):
                logger.info("Duplicate interest from donor %s on request %s", donor_id, request_id)
                raise AlreadyRecorded(
                    f"Donor {donor_id} already expressed interest in request {request_id}"
                )

            status_changed = blood_request.status == RequestStatus.SEARCHING
            if status_changed:
                self._transition(
                    blood_request, RequestStatus.DONOR_CONTACTED, caller, reason="first interest"
                )
            self.events.publish(
                InterestExpressed(
                    request_id=request_id, donor_id=donor_id, status_changed=status_changed
                )
            )
        logger.info("Donor %s expressed interest in request %s", donor_id, request_id)
        return interest

    def _readable_request(self, caller: str, request_id: str):
        blood_request = self._request(request_id)
        self.policy.check(caller, Action.INTEREST_READ, Resource(owner=blood_request.owner))
        return blood_request

    def list_interests_for_request(self, caller: str, request_id: str) -> List[DonorInterestRecord]:
        self._readable_request(caller, request_id)
        return self.store.interests.for_request(request_id)

    def count_interests(self, caller: str, request_id: str) -> int:
        self._readable_request(caller, request_id)
        return len(self.store.interests.for_request(request_id))

    def list_interested_donor_summaries(self, caller: str, request_id: str) -> List[DonorSummary]:
        self._readable_request(caller, request_id)
        summaries = []
        for interest in self.store.interests.for_request(request_id):
            donor = self.store.donors.get(interest.donor_id)
            if donor is not None:
                summaries.append(donor.summary())
        return summaries

    def list_interests_for_donor(self, caller: str, donor_id: str) -> List[DonorInterestRecord]:
        donor = self._donor(donor_id)
        self.policy.check(caller, Action.INTEREST_READ, Resource(owner=donor.owner))
        return [i for i in self.store.interests.scan() if i.donor_id == donor_id]
