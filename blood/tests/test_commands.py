from datetime import timedelta
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from blood.models import BloodRequest
from donor.models import Donor
from profiles.models import UserProfile


class ExpireStaleRequestsCommandTests(TestCase):
    def setUp(self):
        now = timezone.now()
        for request_id, age_days, status in (
            ("stale", 10, "searching"),
            ("fresh", 1, "pending"),
            ("done", 30, "fulfilled"),
        ):
            BloodRequest.objects.create(
                request_id=request_id,
                owner="rita",
                recipient_name="Pat",
                bloodgroup="A+",
                location="Springfield",
                urgency="moderate",
                contact_info="555-0100",
                units_required=1,
                status=status,
                time_created=now - timedelta(days=age_days),
            )

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command("expire_stale_requests", stdout=out)
        self.assertIn("stale", out.getvalue())
        self.assertIn("DRY-RUN", out.getvalue())
        self.assertEqual(BloodRequest.objects.get(request_id="stale").status, "searching")

    def test_apply_expires_only_open_stale_requests(self):
        call_command("expire_stale_requests", "--apply", stdout=StringIO())
        statuses = dict(BloodRequest.objects.values_list("request_id", "status"))
        self.assertEqual(statuses, {"stale": "expired", "fresh": "pending", "done": "fulfilled"})

    def test_days_option(self):
        call_command("expire_stale_requests", "--days", "1", "--apply", stdout=StringIO())
        self.assertEqual(BloodRequest.objects.get(request_id="fresh").status, "expired")
        with self.assertRaises(CommandError):
            call_command("expire_stale_requests", "--days", "0")


class SeedDemoDataCommandTests(TestCase):
    def test_seed_creates_records_through_services(self):
        out = StringIO()
        call_command("seed_demo_data", "--donors", "6", "--requests", "4", "--seed", "7", stdout=out)
        self.assertIn("Seed complete: 6 donors, 4 blood requests", out.getvalue())
        self.assertEqual(Donor.objects.count(), 6)
        self.assertEqual(BloodRequest.objects.count(), 4)
        self.assertEqual(UserProfile.objects.count(), 10)
        donor = Donor.objects.first()
        profile = UserProfile.objects.get(principal=donor.owner)
        self.assertEqual(donor.name, profile.name)

    def test_purge_removes_previous_demo_users(self):
        call_command("seed_demo_data", "--donors", "2", "--requests", "1", "--seed", "1", stdout=StringIO())
        call_command("seed_demo_data", "--donors", "3", "--requests", "1", "--seed", "2", "--purge", stdout=StringIO())
        self.assertEqual(Donor.objects.count(), 3)
        self.assertEqual(User.objects.filter(username__startswith="demo_").count(), 4)
