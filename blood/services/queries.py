"""Read-only searches over donors and requests."""

from __future__ import annotations

import enum
import logging
from collections import Counter
from typing import List, Optional

from blood.constants import OPEN_STATUSES, TERMINAL_STATUSES, BloodType, RequestStatus, Urgency
from blood.domain import (
    BloodRequestRecord,
    DonorRecord,
    DonorSummary,
    MatchSuggestion,
    PublicBloodRequest,
    Statistics,
)
from blood.services.access import Action, Resource
from blood.services.base import ServiceBase, locations_match, require_blood_type, require_text
from blood.services.compatibility import is_compatible
from blood.services.requests import sort_for_display

logger = logging.getLogger(__name__)

EXACT_TYPE_SCORE = 10
ELIGIBLE_SCORE = 5


class MatchPolicy(enum.Enum):
    """How strictly donor and request blood types have to line up.

    Donor dashboards only show same-type requests; suggestions for a request
    use the full ABO/Rh chart.
    """

    EXACT_TYPE_ONLY = "exact"
    FULL_COMPATIBILITY = "full"

    def accepts(self, donor_type: str, recipient_type: str) -> bool:
        if self is MatchPolicy.EXACT_TYPE_ONLY:
            return donor_type == recipient_type
        return is_compatible(donor_type, recipient_type)


def filter_open_requests_for_donor(
    donor: DonorRecord,
    requests,
    policy: MatchPolicy = MatchPolicy.EXACT_TYPE_ONLY,
) -> List[PublicBloodRequest]:
    """Open requests in the donor's location that the donor's type can serve."""

    eligible = [
        r for r in requests
        if r.status in OPEN_STATUSES
        and policy.accepts(donor.blood_type, r.blood_type)
        and locations_match(r.location, donor.location)
    ]
    return [r.public_view() for r in sort_for_display(eligible)]


def match_score(donor: DonorRecord, blood_request: BloodRequestRecord) -> int:
    score = 0
    if donor.blood_type == blood_request.blood_type:
        score += EXACT_TYPE_SCORE
    if donor.health_checklist.eligible_to_donate:
        score += ELIGIBLE_SCORE
    return score


class QueryService(ServiceBase):
    def find_donors_nearby(self, caller: str, blood_type: str, location: str) -> int:
        """How many donors share this exact type and location. Reveals no identities."""

        self.policy.check(caller, Action.QUERY_SEARCH)
        blood_type = require_blood_type(blood_type)
        location = require_text(location, "location")
        return sum(
            1 for d in self.store.donors.scan()
            if d.blood_type == blood_type and locations_match(d.location, location)
        )

    def available_requests_for_donor(
        self,
        caller: str,
        donor_id: str,
        policy: MatchPolicy = MatchPolicy.EXACT_TYPE_ONLY,
    ) -> List[PublicBloodRequest]:
        donor = self._donor(donor_id)
        self.policy.check(caller, Action.DONOR_READ, Resource(owner=donor.owner))
        return filter_open_requests_for_donor(donor, self.store.requests.scan(), policy)

    def _candidates(self, blood_request: BloodRequestRecord, policy: MatchPolicy) -> List[DonorRecord]:
        return [
            d for d in self.store.donors.scan()
            if d.availability
            and policy.accepts(d.blood_type, blood_request.blood_type)
            and locations_match(d.location, blood_request.location)
            and not self.store.interests.exists(blood_request.id, d.id)
        ]

    def auto_match_candidates(
        self,
        caller: str,
        request_id: str,
        policy: MatchPolicy = MatchPolicy.FULL_COMPATIBILITY,
    ) -> List[DonorSummary]:
        blood_request = self._request(request_id)
        self.policy.check(caller, Action.QUERY_SUGGEST, Resource(owner=blood_request.owner))
        return [d.summary() for d in self._candidates(blood_request, policy)]

    def best_match(self, caller: str, request_id: str) -> Optional[MatchSuggestion]:
        """Highest scoring candidate, earliest one on ties.

        A candidate scoring 0 is never suggested. Only a suggestion: contact
        details still require ``confirm_match``.
        """

        blood_request = self._request(request_id)
        self.policy.check(caller, Action.QUERY_SUGGEST, Resource(owner=blood_request.owner))
        best: Optional[MatchSuggestion] = None
        for donor in self._candidates(blood_request, MatchPolicy.FULL_COMPATIBILITY):
            score = match_score(donor, blood_request)
            if score > (best.score if best else 0):
                best = MatchSuggestion(donor_summary=donor.summary(), score=score)
        return best

    def compatible_donors_in_location(
        self, caller: str, blood_type: str, location: str
    ) -> List[DonorSummary]:
        self.policy.check(caller, Action.QUERY_SEARCH)
        blood_type = require_blood_type(blood_type)
        location = require_text(location, "location")
        donors = [
            d for d in self.store.donors.scan()
            if d.availability and d.blood_type == blood_type and locations_match(d.location, location)
        ]
        donors.sort(key=lambda d: (d.name.casefold(), d.id))
        return [d.summary() for d in donors]

    def statistics(self, caller: str) -> Statistics:
        self.policy.check(caller, Action.STATS_READ)
        donors = list(self.store.donors.scan())
        requests = list(self.store.requests.scan())
        by_type = Counter(d.blood_type for d in donors)
        by_urgency = Counter(r.urgency for r in requests)
        return Statistics(
            total_donors=len(donors),
            available_donors=sum(1 for d in donors if d.availability),
            total_requests=len(requests),
            active_requests=sum(1 for r in requests if r.status not in TERMINAL_STATUSES),
            fulfilled_requests=sum(1 for r in requests if r.status == RequestStatus.FULFILLED),
            donors_by_blood_type={t: by_type.get(t, 0) for t in BloodType.values},
            requests_by_urgency={u: by_urgency.get(u, 0) for u in Urgency.values},
        )
