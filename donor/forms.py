from django import forms

from blood.constants import BloodType


class DonorForm(forms.Form):
    donor_id = forms.CharField(max_length=64, required=False)
    # Blank name/contact fall back to the caller's profile on first registration.
    name = forms.CharField(max_length=120, required=False)
    bloodgroup = forms.ChoiceField(choices=BloodType.choices)
    location = forms.CharField(max_length=120)
    contact_info = forms.CharField(max_length=255, required=False)
    no_chronic_illness = forms.BooleanField(required=False)
    no_recent_surgery = forms.BooleanField(required=False)
    eligible_to_donate = forms.BooleanField(required=False)
    health_notes = forms.CharField(widget=forms.Textarea, required=False)
    is_available = forms.NullBooleanField(required=False)


def health_checklist(data):
    return {
        'no_chronic_illness': data['no_chronic_illness'],
        'no_recent_surgery': data['no_recent_surgery'],
        'eligible_to_donate': data['eligible_to_donate'],
        'notes': data['health_notes'],
    }


class AvailabilityForm(forms.Form):
    available = forms.NullBooleanField()

    def clean_available(self):
        value = self.cleaned_data['available']
        if value is None:
            raise forms.ValidationError("Choose true or false.")
        return value


class DonationForm(forms.Form):
    reference = forms.CharField(max_length=120)


class DonorFilterForm(forms.Form):
    bloodgroup = forms.ChoiceField(choices=BloodType.choices, required=False)
    compatible_with = forms.ChoiceField(choices=BloodType.choices, required=False)
    available = forms.NullBooleanField(required=False)
