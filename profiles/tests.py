import json

from django.contrib.auth.models import Group, User
from django.test import TestCase, override_settings
from django.urls import reverse

from profiles.models import UserProfile


@override_settings(MATCHING_ADMIN_GROUP='ADMIN')
class ProfileApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser('root', 'root@example.org', 'x')
        self.rita = User.objects.create_user('rita', password='DemoPass123!')
        self.sam = User.objects.create_user('sam', password='DemoPass123!')

    def _post(self, user, url, payload):
        self.client.force_login(user)
        return self.client.post(url, data=json.dumps(payload), content_type='application/json')

    def test_missing_profile_is_null(self):
        self.client.force_login(self.rita)
        response = self.client.get(reverse('profile-me'))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json())

    def test_save_and_read_own_profile(self):
        response = self._post(self.rita, reverse('profile-me'), {
            'name': 'Rita', 'role': 'requester', 'contact_info': '+15550001',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(UserProfile.objects.get(principal='rita').role, 'requester')
        self.assertEqual(self.client.get(reverse('profile-me')).json()['name'], 'Rita')

    def test_invalid_role_rejected(self):
        response = self._post(self.rita, reverse('profile-me'), {
            'name': 'Rita', 'role': 'pilot', 'contact_info': '+15550001',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('role', response.json()['fields'])

    def test_other_profiles_visible_to_admin_only(self):
        self._post(self.rita, reverse('profile-me'), {
            'name': 'Rita', 'role': 'both', 'contact_info': '+15550001',
        })
        url = reverse('profile-detail', args=['rita'])
        self.client.force_login(self.sam)
        self.assertEqual(self.client.get(url).status_code, 403)
        self.client.force_login(self.admin)
        self.assertEqual(self.client.get(url).json()['principal'], 'rita')
        self.assertEqual(self.client.get(reverse('profile-detail', args=['nobody'])).status_code, 404)

    def test_assign_admin_role(self):
        url = reverse('profile-assign-role')
        self.assertEqual(self._post(self.sam, url, {'principal': 'rita', 'role': 'admin'}).status_code, 403)
        response = self._post(self.admin, url, {'principal': 'rita', 'role': 'admin'})
        self.assertEqual(response.json(), {'principal': 'rita', 'role': 'admin'})
        self.assertTrue(Group.objects.get(name='ADMIN').user_set.filter(username='rita').exists())
        self.assertEqual(self._post(self.admin, url, {'principal': 'ghost', 'role': 'user'}).status_code, 404)

    def test_anonymous_redirected_to_login(self):
        response = self.client.get(reverse('profile-me'))
        self.assertEqual(response.status_code, 302)
