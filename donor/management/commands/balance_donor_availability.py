from __future__ import annotations

import random

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand, CommandError

from blood.exceptions import MatchingError
from blood.services import get_services


class Command(BaseCommand):
    help = (
        "Balance donor availability so the demo dataset feels natural (some donors marked unavailable). "
        "Defaults to dry-run; pass --apply to write changes."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--seed",
            type=int,
            default=123,
            help="Random seed for reproducible selection.",
        )
        parser.add_argument(
            "--ratio-unavailable",
            type=float,
            default=0.18,
            help="Target fraction of donors to mark unavailable (0.0-0.9). Default: 0.18",
        )
        parser.add_argument(
            "--admin",
            help="Username of the admin performing the change (default: first active superuser).",
        )
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually write changes to DB (default is dry-run).",
        )

    def handle(self, *args, **options):
        rng = random.Random(int(options["seed"]))
        ratio_unavailable = float(options["ratio_unavailable"])
        if ratio_unavailable < 0.0 or ratio_unavailable > 0.9:
            raise CommandError("--ratio-unavailable must be between 0.0 and 0.9")

        admin = options.get("admin") or (
            User.objects.filter(is_superuser=True, is_active=True)
            .order_by("id")
            .values_list("username", flat=True)
            .first()
        )
        if not admin:
            raise CommandError("No admin available; create a superuser or pass --admin")

        services = get_services()
        try:
            donors = services.donors.get_all_donors(admin)
        except MatchingError as exc:
            raise CommandError(exc.message) from exc
        if not donors:
            self.stdout.write(self.style.WARNING("No donors found."))
            return

        # Stratified by blood type so every group keeps some available donors.
        by_type: dict[str, list] = {}
        for donor in donors:
            by_type.setdefault(donor.blood_type, []).append(donor)

        unavailable_ids: set[str] = set()
        for _, group in sorted(by_type.items()):
            group = sorted(group, key=lambda d: d.id)
            rng.shuffle(group)
            target_k = max(0, min(len(group), int(round(len(group) * ratio_unavailable))))
            unavailable_ids.update(d.id for d in group[:target_k])

        changes = [
            (donor, donor.id not in unavailable_ids)
            for donor in donors
            if donor.availability != (donor.id not in unavailable_ids)
        ]
        self.stdout.write(
            f"Target unavailable: {len(unavailable_ids)}/{len(donors)} using ratio {ratio_unavailable:.2f}; "
            f"{len(changes)} donor(s) to change."
        )
        for donor, available in changes[:10]:
            self.stdout.write(f"- {donor.id} {donor.blood_type} -> {'available' if available else 'unavailable'}")

        if not options.get("apply"):
            self.stdout.write(self.style.WARNING("DRY-RUN: no changes written. Re-run with --apply to commit."))
            return

        for donor, available in changes:
            services.donors.update_availability(admin, donor.id, available)
        self.stdout.write(self.style.SUCCESS("Availability balancing applied."))
