"""JSON endpoints for blood requests, donor interest and matches."""

import logging

from blood import forms
from blood.http import api_view, created, to_json, validated
from blood.services import get_services
from blood.services.queries import MatchPolicy

logger = logging.getLogger(__name__)


def _caller(request):
    return request.user.get_username()


@api_view('GET', 'POST')
def request_list_view(request):
    services = get_services()
    caller = _caller(request)
    if request.method == 'GET':
        status = request.GET.get('status')
        if status:
            return services.requests.get_requests_by_status(caller, status)
        return services.requests.get_all_public_requests(caller)

    data = validated(forms.RequestForm, request)
    # Computed before the insert so the new request does not trigger it.
    warning = services.advisories.duplicate_request_warning(caller)
    record = services.requests.create_request(
        caller,
        data['request_id'] or None,
        data['recipient_name'],
        data['bloodgroup'],
        data['location'],
        data['urgency'],
        data['contact_info'],
        data['units_required'],
    )
    return created({
        'request': to_json(record),
        'donors_nearby': services.queries.find_donors_nearby(caller, record.blood_type, record.location),
        'advisory': to_json(warning),
    })


@api_view('GET')
def my_requests_view(request):
    return get_services().requests.list_requests_for_owner(_caller(request))


@api_view('GET')
def request_detail_view(request, request_id):
    services = get_services()
    record = services.requests.get_request(_caller(request), request_id)
    return {
        'request': to_json(record),
        'advisory': to_json(services.advisories.inactive_match(request_id)),
    }


@api_view('POST')
def request_status_view(request, request_id):
    data = validated(forms.StatusForm, request)
    return get_services().requests.update_status(_caller(request), request_id, data['status'])


@api_view('POST')
def request_override_view(request, request_id):
    data = validated(forms.OverrideStatusForm, request)
    return get_services().requests.override_status(
        _caller(request), request_id, data['status'], data['reason']
    )


@api_view('GET', 'POST')
def request_interests_view(request, request_id):
    services = get_services()
    caller = _caller(request)
    if request.method == 'POST':
        data = validated(forms.DonorChoiceForm, request)
        interest = services.interests.express_interest(caller, request_id, data['donor_id'])
        return created({
            'interest': to_json(interest),
            'advisory': to_json(services.advisories.response_cooldown(caller)),
        })

    return {
        'count': services.interests.count_interests(caller, request_id),
        'donors': to_json(services.interests.list_interested_donor_summaries(caller, request_id)),
        'interests': to_json(services.interests.list_interests_for_request(caller, request_id)),
    }


@api_view('POST')
def confirm_match_view(request, request_id):
    data = validated(forms.DonorChoiceForm, request)
    return get_services().matches.confirm_match(_caller(request), request_id, data['donor_id'])


@api_view('GET')
def request_match_view(request, request_id):
    return get_services().matches.get_match(_caller(request), request_id)


@api_view('GET')
def request_candidates_view(request, request_id):
    services = get_services()
    caller = _caller(request)
    policy = MatchPolicy.EXACT_TYPE_ONLY if request.GET.get('policy') == 'exact' else MatchPolicy.FULL_COMPATIBILITY
    return {
        'candidates': to_json(services.queries.auto_match_candidates(caller, request_id, policy)),
        'best_match': to_json(services.queries.best_match(caller, request_id)),
    }


@api_view('GET')
def match_list_view(request):
    return get_services().matches.list_matches(_caller(request))


@api_view('GET')
def donors_nearby_view(request):
    data = validated(forms.SearchForm, request, request.GET)
    count = get_services().queries.find_donors_nearby(_caller(request), data['bloodgroup'], data['location'])
    return {'count': count}


@api_view('GET')
def donor_search_view(request):
    data = validated(forms.SearchForm, request, request.GET)
    return get_services().queries.compatible_donors_in_location(
        _caller(request), data['bloodgroup'], data['location']
    )


@api_view('GET')
def statistics_view(request):
    return get_services().queries.statistics(_caller(request))
