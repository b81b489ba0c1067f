from dataclasses import replace
from unittest.mock import patch

from django.contrib.auth.models import Group, User
from django.test import TestCase, override_settings

from blood import models as bmodels
from blood.events import RecordingEventSink, SignalEventSink
from blood.exceptions import AlreadyRecorded, InvalidInput, InvalidState, NotFound, Unauthorized
from blood.services import build_services
from blood.services.access import DjangoAccessControl
from blood.services.store import DjangoStore
from donor.models import Donor


class DjangoStoreServiceTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("root", "root@example.org", "x")
        for name in ("rita", "dan", "olga"):
            User.objects.create_user(name, password="DemoPass123!")
        self.events = RecordingEventSink()
        self.services = build_services(DjangoStore(), DjangoAccessControl(), self.events)

    def _donor(self, owner="dan", donor_id="donor-dan", blood_type="O-"):
        return self.services.donors.create_or_update_donor(
            owner, donor_id, owner.title(), blood_type, "Springfield", f"+1555000{len(owner)}",
            health_checklist={"eligible_to_donate": True},
        )

    def test_donor_round_trip_through_orm(self):
        record = self._donor()
        row = Donor.objects.get(donor_id="donor-dan")
        self.assertEqual(row.owner, "dan")
        self.assertTrue(row.eligible_to_donate)
        self.assertIsNotNone(row.availability_updated_at)
        self.assertEqual(self.services.donors.get_donor("dan", "donor-dan"), record)

    def test_insert_if_absent_never_overwrites(self):
        self._donor()
        store = self.services.store
        taken = replace(store.donors.get("donor-dan"), owner="olga", name="Olga")
        self.assertFalse(store.donors.insert_if_absent(taken))
        self.assertEqual(Donor.objects.get(donor_id="donor-dan").owner, "dan")

    def test_registration_that_loses_the_insert_keeps_owner(self):
        self._donor()
        store = self.services.store
        real_get = store.donors.get
        # The first read misses a row another transaction committed meanwhile.
        with patch.object(store.donors, "get", side_effect=[None, real_get("donor-dan")]):
            with self.assertRaises(Unauthorized):
                self._donor(owner="olga", donor_id="donor-dan")
        self.assertEqual(Donor.objects.get(donor_id="donor-dan").owner, "dan")

        with patch.object(store.donors, "get", side_effect=[None, real_get("donor-dan")]):
            record = self._donor(owner="dan", donor_id="donor-dan", blood_type="O+")
        self.assertEqual(record.owner, "dan")
        self.assertEqual(Donor.objects.get(donor_id="donor-dan").bloodgroup, "O+")
        self.assertEqual(Donor.objects.count(), 1)

    def test_record_donation_persists_history(self):
        self._donor()
        self.services.donors.record_donation("root", "donor-dan", "unit-77")
        self.assertEqual(Donor.objects.get(donor_id="donor-dan").donation_history, ["unit-77"])

    def test_lifecycle_on_database(self):
        self._donor()
        self._donor(owner="olga", donor_id="donor-olga", blood_type="A+")
        self.services.requests.create_request("rita", "req-1", "Pat", "A+", "Springfield", "urgent", "+15550100", 2)
        self.services.requests.update_status("rita", "req-1", "searching")
        self.services.interests.express_interest("dan", "req-1", "donor-dan")
        with self.assertRaises(AlreadyRecorded):
            self.services.interests.express_interest("dan", "req-1", "donor-dan")
        self.assertEqual(bmodels.DonorInterest.objects.count(), 1)
        self.assertEqual(bmodels.BloodRequest.objects.get(request_id="req-1").status, "donor_contacted")

        self.services.interests.express_interest("olga", "req-1", "donor-olga")
        response = self.services.matches.confirm_match("rita", "req-1", "donor-dan")
        self.assertEqual(response.contact_info, "+15550003")
        with self.assertRaises(InvalidState):
            self.services.matches.confirm_match("rita", "req-1", "donor-olga")
        self.assertEqual(bmodels.MatchConfirmation.objects.get().donor.donor_id, "donor-dan")

    def test_group_membership_grants_admin(self):
        with self.assertRaises(Unauthorized):
            self.services.donors.get_all_donors("rita")
        Group.objects.get_or_create(name="ADMIN")[0].user_set.add(User.objects.get(username="rita"))
        self.assertEqual(self.services.donors.get_all_donors("rita"), [])

    @override_settings(MATCHING_ADMIN_GROUP="COORDINATORS")
    def test_assign_role_uses_configured_group(self):
        self.services.profiles.assign_role("root", "rita", "admin")
        self.assertTrue(User.objects.get(username="rita").groups.filter(name="COORDINATORS").exists())
        self.assertTrue(self.services.policy.is_admin("rita"))
        with self.assertRaises(NotFound):
            self.services.profiles.assign_role("root", "nobody", "user")

    def test_inactive_users_are_not_callers(self):
        User.objects.filter(username="rita").update(is_active=False)
        with self.assertRaises(Unauthorized):
            self.services.requests.get_all_public_requests("rita")


class SignalEventSinkTests(TestCase):
    def setUp(self):
        User.objects.create_user("rita", password="DemoPass123!")
        self.services = build_services(DjangoStore(), DjangoAccessControl(), SignalEventSink())

    @patch("blood.tasks.send_request_alerts.delay")
    def test_events_reach_tasks_after_commit(self, delay):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.services.requests.create_request(
                "rita", "req-1", "Pat", "B+", "Springfield", "critical", "+15550100", 1
            )
            delay.assert_not_called()
        self.assertTrue(callbacks)
        delay.assert_called_once_with("req-1")

    @patch("blood.tasks.send_request_alerts.delay")
    def test_failed_operation_publishes_nothing(self, delay):
        with self.captureOnCommitCallbacks(execute=True):
            with self.assertRaises(InvalidInput):
                self.services.requests.create_request(
                    "rita", "req-1", "Pat", "B+", "Springfield", "critical", "+15550100", 0
                )
        delay.assert_not_called()
