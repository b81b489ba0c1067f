"""Hand committed domain events to Celery for delivery."""

import logging

from django.dispatch import receiver

from blood import events, tasks


logger = logging.getLogger(__name__)


@receiver(events.request_created)
def alert_donors_on_request(sender, event, **kwargs):
    tasks.send_request_alerts.delay(event.request_id)


@receiver(events.interest_expressed)
def alert_requester_on_interest(sender, event, **kwargs):
    tasks.send_interest_alert.delay(event.request_id, event.donor_id)


@receiver(events.match_confirmed)
def alert_parties_on_match(sender, event, **kwargs):
    tasks.send_match_alerts.delay(event.request_id)


@receiver(events.status_changed)
def log_status_change(sender, event, **kwargs):
    logger.info(
        "Request %s status %s -> %s by %s%s",
        event.request_id,
        event.old_status,
        event.new_status,
        event.actor or "system",
        f" ({event.reason})" if event.reason else "",
    )


@receiver(events.donor_registered)
def log_donor_registration(sender, event, **kwargs):
    if event.created:
        logger.info("Donor %s registered (%s, %s)", event.donor_id, event.blood_type, event.location)
