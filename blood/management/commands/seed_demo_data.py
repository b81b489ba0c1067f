import random

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.db import transaction
from faker import Faker

from blood import models as blood_models
from blood.constants import BloodType, RequestStatus, Urgency, UserRole
from blood.exceptions import MatchingError
from blood.services import get_services
from donor import models as donor_models
from profiles import models as profile_models

DEFAULT_PASSWORD = "DemoPass123!"
USERNAME_PREFIX = "demo_"
CITY_POOL_SIZE = 6


class Command(BaseCommand):
    help = "Generate demo users, donors, blood requests and donor interest through the matching services"

    def add_arguments(self, parser):
        parser.add_argument("--donors", type=int, help="Number of donors to create (default random between 40-60)")
        parser.add_argument("--requests", type=int, help="Number of blood requests to create (default random between 20-30)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing demo users and their records before seeding")

    def handle(self, *args, **options):
        faker = Faker()
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        donor_target = options.get("donors") or random.randint(40, 60)
        request_target = options.get("requests") or random.randint(20, 30)

        if options.get("purge"):
            self._purge_existing()

        services = get_services()
        # A small pool so donors and requests actually share locations.
        cities = list(dict.fromkeys(faker.city() for _ in range(CITY_POOL_SIZE * 3)))[:CITY_POOL_SIZE]

        with transaction.atomic():
            donors = self._create_donors(services, donor_target, cities, faker)
            requests = self._create_requests(services, request_target, cities, faker)
            interest_count = self._create_interests(services, donors, requests)

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {len(donors)} donors, {len(requests)} blood requests, "
            f"{interest_count} interests."
        ))
        self.stdout.write(self.style.SUCCESS(
            "Default password for generated accounts: '" + DEFAULT_PASSWORD + "'"
        ))

    # ------------------------------------------------------------------
    def _purge_existing(self):
        self.stdout.write("Purging existing demo data…")
        demo_users = list(User.objects.filter(username__startswith=USERNAME_PREFIX).values_list("username", flat=True))
        blood_models.BloodRequest.objects.filter(owner__in=demo_users).delete()
        donor_models.Donor.objects.filter(owner__in=demo_users).delete()
        profile_models.UserProfile.objects.filter(principal__in=demo_users).delete()
        User.objects.filter(username__in=demo_users).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _random_username(self, kind):
        username = f"{USERNAME_PREFIX}{kind}{random.randint(1000, 999999)}"
        while User.objects.filter(username=username).exists():
            username = f"{USERNAME_PREFIX}{kind}{random.randint(1000, 999999)}"
        return username

    def _create_user(self, services, kind, role, faker):
        first_name = faker.first_name()
        last_name = faker.last_name()
        username = self._random_username(kind)
        User.objects.create_user(
            username=username,
            first_name=first_name,
            last_name=last_name,
            email=f"{username}@demo.local",
            password=DEFAULT_PASSWORD,
        )
        services.profiles.save_caller_profile(
            username, f"{first_name} {last_name}", role, faker.msisdn()[:12]
        )
        return username

    def _create_donors(self, services, target, cities, faker):
        donors = []
        for _ in range(target):
            username = self._create_user(services, "donor_", UserRole.DONOR, faker)
            healthy = random.random() < 0.8
            donor = services.donors.create_or_update_donor(
                username,
                None,
                "",  # name and contact come from the profile
                random.choice(BloodType.values),
                random.choice(cities),
                "",
                health_checklist={
                    "no_chronic_illness": healthy,
                    "no_recent_surgery": random.random() < 0.9,
                    "eligible_to_donate": healthy,
                    "notes": "" if healthy else faker.sentence(nb_words=6),
                },
                availability=random.random() >= 0.18,
            )
            donors.append(donor)
        return donors

    def _create_requests(self, services, target, cities, faker):
        requests = []
        for _ in range(target):
            username = self._create_user(services, "requester_", UserRole.REQUESTER, faker)
            record = services.requests.create_request(
                username,
                None,
                faker.name(),
                random.choice(BloodType.values),
                random.choice(cities),
                random.choices(Urgency.values, weights=[1, 2, 4], k=1)[0],
                faker.msisdn()[:12],
                random.randint(1, 4),
            )
            if random.random() < 0.7:
                record = services.requests.update_status(username, record.id, RequestStatus.SEARCHING)
            requests.append(record)
        return requests

    def _create_interests(self, services, donors, requests):
        total = 0
        owners = {d.id: d.owner for d in donors}
        for blood_request in requests:
            if blood_request.status != RequestStatus.SEARCHING:
                continue
            candidates = services.queries.auto_match_candidates(blood_request.owner, blood_request.id)
            seeded = [c for c in candidates if c.donor_id in owners]
            for summary in seeded[: random.randint(0, 3)]:
                owner = owners[summary.donor_id]
                try:
                    services.interests.express_interest(owner, blood_request.id, summary.donor_id)
                except MatchingError as exc:
                    self.stdout.write(self.style.WARNING(f"Skipped interest: {exc.message}"))
                    continue
                total += 1
        return total
