from django import forms

from blood.constants import UserRole
from blood.services.access import ROLE_ADMIN, ROLE_USER


class ProfileForm(forms.Form):
    name = forms.CharField(max_length=120)
    role = forms.ChoiceField(choices=UserRole.choices)
    contact_info = forms.CharField(max_length=255)


class RoleForm(forms.Form):
    principal = forms.CharField(max_length=150)
    role = forms.ChoiceField(choices=[(ROLE_ADMIN, 'Admin'), (ROLE_USER, 'User')])
