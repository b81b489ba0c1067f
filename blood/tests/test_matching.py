import threading

from blood.events import MatchConfirmed
from blood.exceptions import AlreadyRecorded, InvalidState, NotEligible, NotFound, Unauthorized

from .support import ADMIN, DONOR_OWNER, OTHER_DONOR_OWNER, REQUESTER, STRANGER, ServiceTestCase


class ConfirmMatchTests(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.make_donor()
        self.make_donor(owner=OTHER_DONOR_OWNER, blood_type="A+")
        self.make_request(searching=True)

    def test_confirm_discloses_contact_and_marks_matched(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        response = self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")
        self.assertEqual(response.contact_info, "dan@example.org")
        self.assertEqual(response.donor_summary.donor_id, "donor-dan")
        self.assertEqual(self.store.requests.get("req-1").status, "matched")
        self.assertEqual(self.events.of_type(MatchConfirmed)[0].confirmed_by, REQUESTER)
        match = self.services.matches.get_match(DONOR_OWNER, "req-1")
        self.assertEqual(match.confirmed_at, self.clock.now)

    def test_requires_prior_interest(self):
        with self.assertRaises(NotEligible):
            self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")
        self.assertEqual(self.store.requests.get("req-1").status, "searching")

    def test_only_the_owner_confirms(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        for caller in (ADMIN, DONOR_OWNER, STRANGER):
            with self.subTest(caller=caller), self.assertRaises(Unauthorized):
                self.services.matches.confirm_match(caller, "req-1", "donor-dan")

    def test_missing_entities(self):
        with self.assertRaises(NotFound):
            self.services.matches.confirm_match(REQUESTER, "nope", "donor-dan")
        with self.assertRaises(NotFound):
            self.services.matches.confirm_match(REQUESTER, "req-1", "nobody")

    def test_second_confirmation_sees_matched(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        self.services.interests.express_interest(OTHER_DONOR_OWNER, "req-1", "donor-olga")
        self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")
        with self.assertRaises(InvalidState):
            self.services.matches.confirm_match(REQUESTER, "req-1", "donor-olga")
        self.assertEqual(self.services.matches.get_match(REQUESTER, "req-1").donor_id, "donor-dan")

    def test_terminal_requests_reject_confirmation(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        self.services.requests.update_status(REQUESTER, "req-1", "expired")
        with self.assertRaises(InvalidState):
            self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")

    def test_pending_request_cannot_jump_to_matched(self):
        self.make_request(request_id="req-p")
        self.services.interests.express_interest(DONOR_OWNER, "req-p", "donor-dan")
        self.assertEqual(self.store.requests.get("req-p").status, "pending")
        with self.assertRaises(InvalidState):
            self.services.matches.confirm_match(REQUESTER, "req-p", "donor-dan")
        self.assertEqual(self.store.requests.get("req-p").status, "pending")
        self.assertIsNone(self.store.matches.get("req-p"))
        self.assertEqual(self.events.of_type(MatchConfirmed), [])

    def test_concurrent_confirmations_have_one_winner(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        self.services.interests.express_interest(OTHER_DONOR_OWNER, "req-1", "donor-olga")
        outcomes = []
        barrier = threading.Barrier(2)

        def attempt(donor_id):
            barrier.wait()
            try:
                self.services.matches.confirm_match(REQUESTER, "req-1", donor_id)
            except InvalidState:
                outcomes.append("lost")
            else:
                outcomes.append("won")

        threads = [threading.Thread(target=attempt, args=(d,)) for d in ("donor-dan", "donor-olga")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(sorted(outcomes), ["lost", "won"])
        self.assertEqual(len(self.events.of_type(MatchConfirmed)), 1)

    def test_match_visibility(self):
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        self.services.interests.express_interest(OTHER_DONOR_OWNER, "req-1", "donor-olga")
        self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")
        with self.assertRaises(Unauthorized):
            self.services.matches.get_match(OTHER_DONOR_OWNER, "req-1")
        self.assertEqual(len(self.services.matches.list_matches(ADMIN)), 1)
        with self.assertRaises(Unauthorized):
            self.services.matches.list_matches(REQUESTER)

    def test_get_match_without_match(self):
        with self.assertRaises(NotFound):
            self.services.matches.get_match(REQUESTER, "req-1")


class EndToEndScenarioTests(ServiceTestCase):
    def test_full_lifecycle(self):
        self.make_donor(blood_type="O-", location="Springfield")
        self.make_donor(owner=OTHER_DONOR_OWNER, blood_type="A+", location="Springfield")
        request = self.make_request(blood_type="A+", location="Springfield", units=2)
        self.assertEqual(request.status, "pending")

        self.services.requests.update_status(REQUESTER, "req-1", "searching")
        self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")
        self.assertEqual(self.store.requests.get("req-1").status, "donor_contacted")
        with self.assertRaises(AlreadyRecorded):
            self.services.interests.express_interest(DONOR_OWNER, "req-1", "donor-dan")

        # Nothing read-only reveals the donor's contact details.
        public = self.services.requests.get_all_public_requests(STRANGER)
        summaries = self.services.interests.list_interested_donor_summaries(REQUESTER, "req-1")
        nearby = self.services.queries.find_donors_nearby(STRANGER, "O-", "Springfield")
        for value in (public, summaries, nearby):
            self.assertNotIn("dan@example.org", repr(value))

        response = self.services.matches.confirm_match(REQUESTER, "req-1", "donor-dan")
        self.assertEqual(response.contact_info, "dan@example.org")
        self.assertEqual(self.store.requests.get("req-1").status, "matched")

        self.services.requests.update_status(REQUESTER, "req-1", "fulfilled")
        self.assertEqual(self.store.requests.get("req-1").status, "fulfilled")
        with self.assertRaises(InvalidState):
            self.services.interests.express_interest(OTHER_DONOR_OWNER, "req-1", "donor-olga")
