"""Match confirmation: the one place a donor's contact details are disclosed."""

from __future__ import annotations

import logging
from typing import List

from blood.constants import RequestStatus
from blood.domain import DonorContactResponse, MatchRecord
from blood.events import MatchConfirmed
from blood.exceptions import InvalidState, NotEligible, NotFound
from blood.services.access import Action, Resource
from blood.services.base import ServiceBase

logger = logging.getLogger(__name__)


class MatchService(ServiceBase):
    def confirm_match(self, caller: str, request_id: str, donor_id: str) -> DonorContactResponse:
        """Resolve ``request_id`` to ``donor_id`` and return the donor's contact details.

        Only the request owner may confirm, and only a donor that expressed
        interest. The match row is inserted with a uniqueness guarantee so of
        two concurrent confirmations exactly one wins; the other sees the
        request already matched.
        """

        with self.store.atomic():
            blood_request = self._request(request_id, for_update=True)
            self.policy.check(caller, Action.MATCH_CONFIRM, Resource(owner=blood_request.owner))
            donor = self._donor(donor_id)
            if not self.store.interests.exists(request_id, donor_id):
                raise NotEligible(
                    f"Donor {donor_id} has not expressed interest in request {request_id}"
                )
            if blood_request.status != RequestStatus.DONOR_CONTACTED:
                raise InvalidState(
                    f"Request {request_id} is {blood_request.status}; only a request with donor contact can be matched"
                )

            match = MatchRecord(
                request_id=request_id,
                donor_id=donor_id,
                confirmed_by=caller,
                confirmed_at=self.clock(),
            )
            if not self.store.matches.insert_if_absent(match):
                raise InvalidState(f"Request {request_id} is already matched")
            self._transition(blood_request, RequestStatus.MATCHED, caller, reason="match confirmed")
            self.events.publish(
                MatchConfirmed(request_id=request_id, donor_id=donor_id, confirmed_by=caller)
            )
        logger.info("Request %s matched to donor %s", request_id, donor_id)
        return DonorContactResponse(donor_summary=donor.summary(), contact_info=donor.contact_info)

    def get_match(self, caller: str, request_id: str) -> MatchRecord:
        blood_request = self._request(request_id)
        match = self.store.matches.get(request_id)
        if match is None:
            raise NotFound(f"Request {request_id} has no confirmed match")
        donor = self.store.donors.get(match.donor_id)
        participants = frozenset({donor.owner}) if donor is not None else frozenset()
        self.policy.check(
            caller,
            Action.MATCH_READ,
            Resource(owner=blood_request.owner, participants=participants),
        )
        return match

    def list_matches(self, caller: str) -> List[MatchRecord]:
        self.policy.check(caller, Action.MATCH_LIST)
        return list(self.store.matches.scan())
