from django.http import JsonResponse

from blood.http import api_view, validated
from blood.services import get_services
from profiles import forms


@api_view('GET', 'POST')
def my_profile_view(request):
    services = get_services()
    caller = request.user.get_username()
    if request.method == 'POST':
        data = validated(forms.ProfileForm, request)
        return services.profiles.save_caller_profile(caller, data['name'], data['role'], data['contact_info'])
    return services.profiles.get_caller_profile(caller)


@api_view('GET')
def profile_detail_view(request, principal):
    return get_services().profiles.get_profile(request.user.get_username(), principal)


@api_view('POST')
def assign_role_view(request):
    data = validated(forms.RoleForm, request)
    get_services().profiles.assign_role(request.user.get_username(), data['principal'], data['role'])
    return JsonResponse({'principal': data['principal'], 'role': data['role']})
