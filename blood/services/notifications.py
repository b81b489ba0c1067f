"""AWS SNS text messages for matching events.

Each helper takes the ids carried by a domain event, loads what it needs from
the database and publishes one SMS per recipient. Donor contact details are
only ever sent to a requester after they confirmed that donor.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from blood.constants import Urgency
from blood.models import BloodRequest, MatchConfirmation
from blood.services.compatibility import compatible_donor_types
from donor.models import Donor


logger = logging.getLogger(__name__)

ALERT_URGENCIES = frozenset({Urgency.CRITICAL, Urgency.URGENT})


@dataclass
class AlertResult:
    """Lightweight summary of an alert dispatch attempt."""

    enabled: bool
    attempted: int = 0
    delivered: int = 0
    recipients: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    reason: Optional[str] = None


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """E.164 form of ``raw`` or None when it does not look like a phone number.

    Contact info is free text, so e-mail addresses and the like return None.
    """

    if not raw or "@" in raw:
        return None
    cleaned = re.sub(r"[\s\-().]+", "", str(raw).strip())
    if cleaned.startswith("+"):
        digits = "+" + re.sub(r"[^0-9]", "", cleaned)
        return digits if len(digits) >= 8 else None
    if not cleaned.isdigit():
        return None
    digits_only = cleaned.lstrip("0") or cleaned
    default_code = str(getattr(settings, "AWS_SNS_DEFAULT_COUNTRY_CODE", "") or "+1")
    if not default_code.startswith("+"):
        default_code = f"+{default_code}"
    # Country code typed without the plus sign
    if digits_only.startswith(default_code.lstrip("+")) and len(digits_only) > 10:
        return f"+{digits_only}"
    return f"{default_code}{digits_only}"


def notify_donors_of_request(request_id: str, *, sns_client=None) -> AlertResult:
    """Alert available compatible donors in the request's location.

    Only critical and urgent requests alert donors; the message points them
    to the dashboard and carries no personal details.
    """

    blood_request = BloodRequest.objects.get(request_id=request_id)
    if blood_request.urgency not in ALERT_URGENCIES:
        return AlertResult(True, reason="not-urgent")

    if not settings.AWS_SNS_ENABLED:
        logger.info("AWS SNS alerts disabled; skipping donor alert for request %s", request_id)
        return AlertResult(False, reason="sns-disabled")

    recipients = _select_donors_for_alert(blood_request)
    if not recipients:
        logger.warning(
            "No donors to alert for request %s (%s, %s)",
            request_id,
            blood_request.bloodgroup,
            blood_request.location,
        )
        return AlertResult(True, reason="no-donors")

    message = (
        f"{blood_request.get_urgency_display()} {blood_request.bloodgroup} blood needed "
        f"({blood_request.units_required} unit(s)) in {blood_request.location}. "
        "Open your donor dashboard to respond."
    )
    return _publish(recipients, message, sns_client=sns_client)


def notify_requester_of_interest(request_id: str, donor_id: str, *, sns_client=None) -> AlertResult:
    blood_request = BloodRequest.objects.get(request_id=request_id)
    if not settings.AWS_SNS_ENABLED:
        logger.info("AWS SNS alerts disabled; skipping interest alert for request %s", request_id)
        return AlertResult(False, reason="sns-disabled")

    phone = normalize_phone_number(blood_request.contact_info)
    if not phone:
        return AlertResult(True, reason="no-contact")

    donor = Donor.objects.get(donor_id=donor_id)
    message = (
        f"A {donor.bloodgroup} donor responded to your request for {blood_request.recipient_name}. "
        "Review interested donors and confirm one to see their contact details."
    )
    return _publish([(request_id, phone)], message, sns_client=sns_client)


def notify_match_confirmed(request_id: str, *, sns_client=None) -> AlertResult:
    """Tell the donor they were chosen and send the requester the donor's contact."""

    match = MatchConfirmation.objects.select_related("blood_request", "donor").get(
        blood_request__request_id=request_id
    )
    if not settings.AWS_SNS_ENABLED:
        logger.info("AWS SNS alerts disabled; skipping match alert for request %s", request_id)
        return AlertResult(False, reason="sns-disabled")

    blood_request, donor = match.blood_request, match.donor
    result = AlertResult(True)

    donor_phone = normalize_phone_number(donor.contact_info)
    if donor_phone:
        _merge(result, _publish(
            [(donor.donor_id, donor_phone)],
            f"You were confirmed as the donor for {blood_request.recipient_name} "
            f"({blood_request.bloodgroup}, {blood_request.location}). "
            f"Requester contact: {blood_request.contact_info}",
            sns_client=sns_client,
        ))

    requester_phone = normalize_phone_number(blood_request.contact_info)
    if requester_phone:
        _merge(result, _publish(
            [(request_id, requester_phone)],
            f"Match confirmed: {donor.name} ({donor.bloodgroup}). Contact: {donor.contact_info}",
            sns_client=sns_client,
        ))

    if not result.attempted:
        result.reason = "no-contact"
    return result


def _select_donors_for_alert(blood_request) -> Sequence[Tuple[str, str]]:
    donor_types = compatible_donor_types(blood_request.bloodgroup)
    queryset = Donor.objects.filter(
        bloodgroup__in=donor_types,
        is_available=True,
        location__iexact=blood_request.location.strip(),
    ).exclude(contact_info="").order_by("id")
    # No alert to the requester's own donor profile
    queryset = queryset.exclude(owner=blood_request.owner)

    max_recipients = max(getattr(settings, "AWS_SNS_MAX_RECIPIENTS", 10), 1)
    recipients: List[Tuple[str, str]] = []
    seen_numbers = set()
    skipped_invalid = 0
    for donor in queryset[: max_recipients * 2]:  # over-fetch to offset unusable contacts
        phone = normalize_phone_number(donor.contact_info)
        if not phone:
            skipped_invalid += 1
            continue
        if phone in seen_numbers:
            continue
        recipients.append((donor.donor_id, phone))
        seen_numbers.add(phone)
        if len(recipients) >= max_recipients:
            break

    if skipped_invalid:
        logger.info("Skipped %d donors without a usable phone number", skipped_invalid)
    return recipients


def _publish(recipients: Sequence[Tuple[str, str]], message: str, *, sns_client=None) -> AlertResult:
    if sns_client is None:
        sns_client = get_sns_client()
    attributes = _message_attributes()
    result = AlertResult(True, attempted=len(recipients))
    for ref, phone in recipients:
        try:
            sns_client.publish(PhoneNumber=phone, Message=message[:1200], MessageAttributes=attributes)
        except (BotoCoreError, ClientError) as exc:
            result.skipped.append(phone)
            logger.error("Failed to publish SMS for %s (phone: %s): %s", ref, phone, exc)
            continue
        result.recipients.append(phone)
        result.delivered += 1
    return result


def _merge(total: AlertResult, part: AlertResult) -> None:
    total.attempted += part.attempted
    total.delivered += part.delivered
    total.recipients.extend(part.recipients)
    total.skipped.extend(part.skipped)


def get_sns_client():
    return boto3.client("sns", region_name=settings.AWS_SNS_REGION)


def _message_attributes():
    attributes = {
        "AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": settings.AWS_SNS_SMS_TYPE},
    }
    if settings.AWS_SNS_SENDER_ID:
        attributes["AWS.SNS.SMS.SenderID"] = {
            "DataType": "String",
            "StringValue": settings.AWS_SNS_SENDER_ID[:11],
        }
    return attributes
