import json
from io import StringIO

from django.contrib.auth.models import User
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse

from donor.forms import AvailabilityForm, DonorForm
from donor.models import Donor


class DonorFormTests(TestCase):
    def setUp(self):
        self.base_data = {
            'bloodgroup': 'A+',
            'location': 'Springfield',
        }

    def test_name_and_contact_are_optional(self):
        form = DonorForm(data=self.base_data)
        self.assertTrue(form.is_valid(), form.errors)
        self.assertIsNone(form.cleaned_data['is_available'])

    def test_rejects_unknown_blood_group(self):
        form = DonorForm(data={**self.base_data, 'bloodgroup': 'C+'})
        self.assertFalse(form.is_valid())
        self.assertIn('bloodgroup', form.errors)

    def test_availability_requires_a_choice(self):
        self.assertFalse(AvailabilityForm(data={}).is_valid())
        form = AvailabilityForm(data={'available': False})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertFalse(form.cleaned_data['available'])


class DonorApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser('root', 'root@example.org', 'x')
        self.dan = User.objects.create_user('dan', password='DemoPass123!')
        self.sam = User.objects.create_user('sam', password='DemoPass123!')

    def _post(self, user, url, payload):
        self.client.force_login(user)
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def _register(self, **overrides):
        payload = {
            'donor_id': 'donor-dan',
            'name': 'Dan',
            'bloodgroup': 'O-',
            'location': 'Springfield',
            'contact_info': '+15550003',
        }
        payload.update(overrides)
        return self._post(self.dan, reverse('donor-list'), payload)

    def test_register_and_read_back(self):
        response = self._register()
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.json()['availability'])
        self.client.force_login(self.dan)
        self.assertEqual(self.client.get(reverse('donor-me')).json()['id'], 'donor-dan')
        self.assertEqual(self.client.get(reverse('donor-detail', args=['donor-dan'])).json()['owner'], 'dan')

    def test_second_profile_conflicts(self):
        self._register()
        response = self._register(donor_id='donor-dan-2')
        self.assertEqual(response.status_code, 409)

    def test_foreign_update_forbidden(self):
        self._register()
        response = self._post(self.sam, reverse('donor-detail', args=['donor-dan']), {
            'name': 'Sam', 'bloodgroup': 'AB+', 'location': 'Elsewhere', 'contact_info': 'x',
        })
        self.assertEqual(response.status_code, 403)
        self.assertEqual(Donor.objects.get(donor_id='donor-dan').name, 'Dan')

    def test_availability_toggle(self):
        self._register()
        url = reverse('donor-availability', args=['donor-dan'])
        self.assertFalse(self._post(self.dan, url, {'available': False}).json()['availability'])
        self.assertEqual(self._post(self.dan, url, {}).status_code, 400)
        self.assertFalse(Donor.objects.get(donor_id='donor-dan').is_available)

    def test_admin_listing_and_filters(self):
        self._register()
        self.client.force_login(self.sam)
        self.assertEqual(self.client.get(reverse('donor-list')).status_code, 403)
        self.client.force_login(self.admin)
        self.assertEqual(len(self.client.get(reverse('donor-list')).json()), 1)
        self.assertEqual(self.client.get(reverse('donor-list'), {'bloodgroup': 'A+'}).json(), [])
        self.assertEqual(len(self.client.get(reverse('donor-list'), {'compatible_with': 'A+'}).json()), 1)
        self.assertEqual(len(self.client.get(reverse('donor-list'), {'available': 'true'}).json()), 1)

    def test_record_donation(self):
        self._register()
        url = reverse('donor-donations', args=['donor-dan'])
        self.assertEqual(self._post(self.dan, url, {'reference': 'x'}).status_code, 403)
        response = self._post(self.admin, url, {'reference': 'unit-1'})
        self.assertEqual(response.json()['donation_history'], ['unit-1'])

    def test_open_requests_for_donor(self):
        self._register()
        self._post(self.sam, reverse('request-list'), {
            'request_id': 'req-1', 'recipient_name': 'Pat', 'bloodgroup': 'A+', 'location': 'springfield',
            'urgency': 'urgent', 'contact_info': '555', 'units_required': 1,
        })
        self.client.force_login(self.dan)
        url = reverse('donor-requests', args=['donor-dan'])
        self.assertEqual(self.client.get(url).json(), [])
        self.assertEqual([r['id'] for r in self.client.get(url, {'policy': 'full'}).json()], ['req-1'])


class BalanceDonorAvailabilityCommandTests(TestCase):
    def setUp(self):
        User.objects.create_superuser('root', 'root@example.org', 'x')
        for n in range(10):
            Donor.objects.create(
                donor_id=f'd{n}',
                owner=f'owner{n}',
                name=f'Donor {n}',
                bloodgroup='O+' if n % 2 else 'A-',
                location='Springfield',
                contact_info='555',
            )

    def test_dry_run_by_default(self):
        out = StringIO()
        call_command('balance_donor_availability', '--ratio-unavailable', '0.4', stdout=out)
        self.assertIn('DRY-RUN', out.getvalue())
        self.assertEqual(Donor.objects.filter(is_available=False).count(), 0)

    def test_apply_marks_ratio_unavailable(self):
        call_command('balance_donor_availability', '--ratio-unavailable', '0.4', '--apply', stdout=StringIO())
        self.assertEqual(Donor.objects.filter(is_available=False).count(), 4)
        self.assertEqual(Donor.objects.filter(is_available=False, bloodgroup='O+').count(), 2)

    def test_rejects_bad_ratio(self):
        with self.assertRaises(CommandError):
            call_command('balance_donor_availability', '--ratio-unavailable', '1.5')
