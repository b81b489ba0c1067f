from django.test import SimpleTestCase

from blood.constants import BloodType
from blood.services.compatibility import (
    compatible_donor_types,
    compatible_recipient_types,
    is_compatible,
    is_valid_blood_type,
)


class CompatibilityChartTests(SimpleTestCase):
    def test_every_type_receives_from_itself_and_o_negative(self):
        for recipient in BloodType.values:
            donors = compatible_donor_types(recipient)
            self.assertIn(recipient, donors)
            self.assertIn("O-", donors)

    def test_only_ab_positive_receives_from_ab_positive(self):
        for recipient in BloodType.values:
            if recipient == "AB+":
                self.assertIn("AB+", compatible_donor_types(recipient))
            else:
                self.assertNotIn("AB+", compatible_donor_types(recipient))

    def test_ab_positive_is_universal_recipient(self):
        self.assertEqual(set(compatible_donor_types("AB+")), set(BloodType.values))

    def test_o_negative_is_universal_donor(self):
        self.assertEqual(set(compatible_recipient_types("O-")), set(BloodType.values))

    def test_ab_negative_gives_to_ab_only(self):
        self.assertEqual(set(compatible_recipient_types("AB-")), {"AB-", "AB+"})

    def test_directions_agree(self):
        for donor in BloodType.values:
            for recipient in BloodType.values:
                self.assertEqual(
                    donor in compatible_donor_types(recipient),
                    recipient in compatible_recipient_types(donor),
                )

    def test_rh_negative_recipients_never_take_positive_blood(self):
        self.assertFalse(is_compatible("O+", "O-"))
        self.assertFalse(is_compatible("A+", "A-"))
        self.assertTrue(is_compatible("A-", "A+"))

    def test_unknown_types(self):
        self.assertFalse(is_valid_blood_type("C+"))
        self.assertFalse(is_compatible("C+", "A+"))
        with self.assertRaises(ValueError):
            compatible_donor_types("C+")
