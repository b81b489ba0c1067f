import logging

from botocore.exceptions import BotoCoreError, ClientError
from celery import shared_task

from blood.services import notifications


logger = logging.getLogger(__name__)

DELIVERY_ERRORS = (BotoCoreError, ClientError)


@shared_task(bind=True, autoretry_for=DELIVERY_ERRORS, retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_request_alerts(self, request_id: str) -> dict:
    result = notifications.notify_donors_of_request(request_id)
    return {'delivered': result.delivered, 'reason': result.reason}


@shared_task(bind=True, autoretry_for=DELIVERY_ERRORS, retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_interest_alert(self, request_id: str, donor_id: str) -> dict:
    result = notifications.notify_requester_of_interest(request_id, donor_id)
    return {'delivered': result.delivered, 'reason': result.reason}


@shared_task(bind=True, autoretry_for=DELIVERY_ERRORS, retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_match_alerts(self, request_id: str) -> dict:
    result = notifications.notify_match_confirmed(request_id)
    return {'delivered': result.delivered, 'reason': result.reason}


@shared_task
def expire_stale_requests() -> list:
    from blood.services import get_services

    expired = get_services().requests.expire_stale_requests()
    if expired:
        logger.info("Periodic expiry closed %d request(s): %s", len(expired), ", ".join(expired))
    return expired
