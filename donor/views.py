"""JSON endpoints for donor profiles."""

import logging

from blood.http import api_view, created, validated
from blood.services import get_services
from blood.services.queries import MatchPolicy
from donor import forms

logger = logging.getLogger(__name__)


def _caller(request):
    return request.user.get_username()


def _save_donor(request, donor_id=None):
    data = validated(forms.DonorForm, request)
    available = data['is_available']
    return get_services().donors.create_or_update_donor(
        _caller(request),
        donor_id or data['donor_id'] or None,
        data['name'],
        data['bloodgroup'],
        data['location'],
        data['contact_info'],
        health_checklist=forms.health_checklist(data),
        availability=True if available is None else available,
    )


@api_view('GET', 'POST')
def donor_list_view(request):
    if request.method == 'POST':
        return created(_save_donor(request))

    services = get_services()
    caller = _caller(request)
    filters = validated(forms.DonorFilterForm, request, request.GET)
    if filters['compatible_with']:
        return services.donors.find_compatible_donors(caller, filters['compatible_with'])
    if filters['bloodgroup']:
        return services.donors.get_donors_by_blood_type(caller, filters['bloodgroup'])
    if filters['available'] is not None:
        return services.donors.get_donors_by_availability(caller, filters['available'])
    return services.donors.get_all_donors(caller)


@api_view('GET')
def my_donor_view(request):
    return get_services().donors.my_donor(_caller(request))


@api_view('GET', 'POST')
def donor_detail_view(request, donor_id):
    if request.method == 'POST':
        return _save_donor(request, donor_id)
    return get_services().donors.get_donor(_caller(request), donor_id)


@api_view('POST')
def donor_availability_view(request, donor_id):
    data = validated(forms.AvailabilityForm, request)
    return get_services().donors.update_availability(_caller(request), donor_id, data['available'])


@api_view('POST')
def donor_donation_view(request, donor_id):
    data = validated(forms.DonationForm, request)
    return get_services().donors.record_donation(_caller(request), donor_id, data['reference'])


@api_view('GET')
def donor_requests_view(request, donor_id):
    """Open requests this donor could answer; ``?policy=full`` widens to the full chart."""

    policy = MatchPolicy.FULL_COMPATIBILITY if request.GET.get('policy') == 'full' else MatchPolicy.EXACT_TYPE_ONLY
    return get_services().queries.available_requests_for_donor(_caller(request), donor_id, policy)


@api_view('GET')
def donor_interests_view(request, donor_id):
    return get_services().interests.list_interests_for_donor(_caller(request), donor_id)
