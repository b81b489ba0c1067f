from django.core.management.base import BaseCommand, CommandError

from blood.services import get_services


class Command(BaseCommand):
    help = (
        "Expire open blood requests older than the expiry window. "
        "Defaults to dry-run; pass --apply to write changes."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            help="Age in days after which an open request expires (default: MATCHING_REQUEST_EXPIRY_DAYS).",
        )
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Actually write changes to DB (default is dry-run).",
        )

    def handle(self, *args, **options):
        days = options.get("days")
        if days is not None and days < 1:
            raise CommandError("--days must be at least 1")

        registry = get_services().requests
        stale = registry.stale_requests(days=days)
        if not stale:
            self.stdout.write("No stale requests.")
            return

        self.stdout.write(f"{len(stale)} stale request(s):")
        for blood_request in stale:
            self.stdout.write(
                f"- {blood_request.id} {blood_request.blood_type} {blood_request.location} "
                f"status={blood_request.status} created={blood_request.time_created:%Y-%m-%d %H:%M}"
            )

        if not options.get("apply"):
            self.stdout.write(self.style.WARNING("DRY-RUN: no changes written. Re-run with --apply to commit."))
            return

        expired = registry.expire_stale_requests(days=days)
        self.stdout.write(self.style.SUCCESS(f"Expired {len(expired)} request(s)."))
