from django import forms

from blood.constants import BloodType, RequestStatus, Urgency


class RequestForm(forms.Form):
    request_id = forms.CharField(max_length=64, required=False)
    recipient_name = forms.CharField(max_length=120)
    bloodgroup = forms.ChoiceField(choices=BloodType.choices)
    location = forms.CharField(max_length=120)
    urgency = forms.ChoiceField(choices=Urgency.choices, initial=Urgency.MODERATE)
    contact_info = forms.CharField(max_length=255)
    units_required = forms.IntegerField(min_value=1)


class StatusForm(forms.Form):
    status = forms.ChoiceField(choices=RequestStatus.choices)


class OverrideStatusForm(StatusForm):
    reason = forms.CharField(max_length=255, required=False)


class DonorChoiceForm(forms.Form):
    donor_id = forms.CharField(max_length=64)


class SearchForm(forms.Form):
    bloodgroup = forms.ChoiceField(choices=BloodType.choices)
    location = forms.CharField(max_length=120)
