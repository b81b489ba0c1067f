import threading

from blood.domain import HealthChecklist, ProfileRecord
from blood.events import DonorRegistered
from blood.exceptions import AlreadyRecorded, InvalidInput, NotFound, Unauthorized

from .support import ADMIN, DONOR_OWNER, OTHER_DONOR_OWNER, STRANGER, ServiceTestCase


class DonorRegistryTests(ServiceTestCase):
    def test_create_sets_owner_to_caller(self):
        donor = self.make_donor()
        self.assertEqual(donor.owner, DONOR_OWNER)
        self.assertTrue(donor.availability)
        self.assertEqual(self.store.donors.get("donor-dan"), donor)
        event = self.events.of_type(DonorRegistered)[0]
        self.assertTrue(event.created)

    def test_upsert_preserves_owner_and_history(self):
        self.make_donor()
        self.services.donors.record_donation(ADMIN, "donor-dan", "donation-2024-11")
        updated = self.services.donors.create_or_update_donor(
            ADMIN, "donor-dan", "Daniel", "O+", "Shelbyville", "555-0199",
        )
        self.assertEqual(updated.owner, DONOR_OWNER)
        self.assertEqual(updated.donation_history, ("donation-2024-11",))
        self.assertEqual(updated.blood_type, "O+")
        self.assertFalse(self.events.of_type(DonorRegistered)[-1].created)

    def test_repeated_identical_upsert_is_idempotent(self):
        first = self.make_donor(health_checklist=HealthChecklist(eligible_to_donate=True))
        second = self.make_donor(health_checklist=HealthChecklist(eligible_to_donate=True))
        self.assertEqual(first, second)

    def test_foreign_update_is_rejected_and_record_unchanged(self):
        before = self.make_donor()
        with self.assertRaises(Unauthorized):
            self.services.donors.create_or_update_donor(
                STRANGER, "donor-dan", "Mallory", "AB+", "Elsewhere", "mallory@example.org",
            )
        self.assertEqual(self.store.donors.get("donor-dan"), before)

    def test_authorization_is_checked_before_validation(self):
        self.make_donor()
        with self.assertRaises(Unauthorized):
            self.services.donors.create_or_update_donor(STRANGER, "donor-dan", "", "??", "", "")

    def test_second_profile_for_same_owner_is_rejected(self):
        self.make_donor()
        with self.assertRaises(AlreadyRecorded):
            self.make_donor(donor_id="donor-dan-2")

    def test_admin_may_register_several_donors(self):
        self.make_donor(owner=ADMIN, donor_id="a1")
        self.make_donor(owner=ADMIN, donor_id="a2")
        self.assertEqual(len(self.services.donors.get_all_donors(ADMIN)), 2)

    def test_validation(self):
        with self.assertRaises(InvalidInput) as ctx:
            self.make_donor(blood_type="Z")
        self.assertEqual(ctx.exception.field, "blood_type")
        with self.assertRaises(InvalidInput):
            self.make_donor(location="   ")

    def test_blank_name_and_contact_default_from_profile(self):
        self.store.profiles.put(ProfileRecord(DONOR_OWNER, "Dan From Profile", "donor", "555-0123"))
        donor = self.services.donors.create_or_update_donor(DONOR_OWNER, None, "", "B+", "Springfield", "")
        self.assertEqual(donor.name, "Dan From Profile")
        self.assertEqual(donor.contact_info, "555-0123")
        self.assertTrue(donor.id.startswith("donor-"))

    def test_get_donor(self):
        self.make_donor()
        self.assertEqual(self.services.donors.get_donor(DONOR_OWNER, "donor-dan").name, "Dan Donor")
        self.assertEqual(self.services.donors.get_donor(ADMIN, "donor-dan").owner, DONOR_OWNER)
        with self.assertRaises(Unauthorized):
            self.services.donors.get_donor(STRANGER, "donor-dan")
        with self.assertRaises(NotFound):
            self.services.donors.get_donor(ADMIN, "missing")

    def test_my_donor(self):
        self.assertIsNone(self.services.donors.my_donor(DONOR_OWNER))
        self.make_donor()
        self.assertEqual(self.services.donors.my_donor(DONOR_OWNER).id, "donor-dan")

    def test_admin_listings_sorted_by_name(self):
        self.make_donor(owner=DONOR_OWNER, name="Zed", blood_type="A+")
        self.make_donor(owner=OTHER_DONOR_OWNER, name="amy", blood_type="O-", availability=False)
        names = [d.name for d in self.services.donors.get_all_donors(ADMIN)]
        self.assertEqual(names, ["amy", "Zed"])
        self.assertEqual([d.name for d in self.services.donors.get_donors_by_blood_type(ADMIN, "A+")], ["Zed"])
        self.assertEqual([d.name for d in self.services.donors.get_donors_by_availability(ADMIN, False)], ["amy"])
        self.assertEqual(
            [d.name for d in self.services.donors.find_compatible_donors(ADMIN, "A+")], ["amy", "Zed"]
        )
        self.assertEqual(self.services.donors.find_compatible_donors(ADMIN, "O-")[0].name, "amy")
        with self.assertRaises(Unauthorized):
            self.services.donors.get_all_donors(DONOR_OWNER)

    def test_update_availability(self):
        self.make_donor()
        donor = self.services.donors.update_availability(DONOR_OWNER, "donor-dan", False)
        self.assertFalse(donor.availability)
        # Idempotent
        self.assertFalse(self.services.donors.update_availability(DONOR_OWNER, "donor-dan", False).availability)
        with self.assertRaises(Unauthorized):
            self.services.donors.update_availability(STRANGER, "donor-dan", True)
        with self.assertRaises(InvalidInput):
            self.services.donors.update_availability(DONOR_OWNER, "donor-dan", "yes")

    def test_record_donation_is_admin_only(self):
        self.make_donor()
        with self.assertRaises(Unauthorized):
            self.services.donors.record_donation(DONOR_OWNER, "donor-dan", "self-reported")
        donor = self.services.donors.record_donation(ADMIN, "donor-dan", "d-1")
        donor = self.services.donors.record_donation(ADMIN, "donor-dan", "d-2")
        self.assertEqual(donor.donation_history, ("d-1", "d-2"))

    def test_unknown_caller_is_unauthorized(self):
        with self.assertRaises(Unauthorized):
            self.make_donor(owner="ghost")


class ConcurrentRegistrationTests(ServiceTestCase):
    def _race(self, attempts):
        outcomes = {}
        barrier = threading.Barrier(len(attempts))

        def attempt(owner, donor_id):
            barrier.wait()
            try:
                self.make_donor(owner=owner, donor_id=donor_id)
            except (AlreadyRecorded, Unauthorized) as exc:
                outcomes[(owner, donor_id)] = type(exc)
            else:
                outcomes[(owner, donor_id)] = "ok"

        threads = [threading.Thread(target=attempt, args=args) for args in attempts]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_same_id_keeps_first_owner(self):
        outcomes = self._race([(DONOR_OWNER, "donor-x"), (OTHER_DONOR_OWNER, "donor-x")])
        winners = [key for key, outcome in outcomes.items() if outcome == "ok"]
        self.assertEqual(len(winners), 1)
        self.assertIn(Unauthorized, outcomes.values())
        self.assertEqual(self.store.donors.get("donor-x").owner, winners[0][0])
        self.assertEqual(len(self.events.of_type(DonorRegistered)), 1)

    def test_same_owner_gets_one_donor(self):
        outcomes = self._race([(DONOR_OWNER, "donor-a"), (DONOR_OWNER, "donor-b")])
        self.assertEqual(list(outcomes.values()).count("ok"), 1)
        self.assertIn(AlreadyRecorded, outcomes.values())
        self.assertEqual(len([d for d in self.store.donors.scan() if d.owner == DONOR_OWNER]), 1)
