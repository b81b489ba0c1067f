import json

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse


class MatchingApiTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_superuser("root", "root@example.org", "x")
        self.rita = User.objects.create_user("rita", password="DemoPass123!")
        self.dan = User.objects.create_user("dan", password="DemoPass123!")
        self.sam = User.objects.create_user("sam", password="DemoPass123!")

    def _post(self, user, url, payload):
        self.client.force_login(user)
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def _get(self, user, url, params=None):
        self.client.force_login(user)
        return self.client.get(url, params or {})

    def _register_dan(self):
        return self._post(self.dan, reverse("donor-list"), {
            "donor_id": "donor-dan",
            "name": "Dan",
            "bloodgroup": "O-",
            "location": "Springfield",
            "contact_info": "+15550003",
            "eligible_to_donate": True,
        })

    def _create_request(self, **overrides):
        payload = {
            "request_id": "req-1",
            "recipient_name": "Pat",
            "bloodgroup": "A+",
            "location": "Springfield",
            "urgency": "urgent",
            "contact_info": "+15550100",
            "units_required": 2,
        }
        payload.update(overrides)
        return self._post(self.rita, reverse("request-list"), payload)

    def test_anonymous_callers_are_redirected_to_login(self):
        response = self.client.get(reverse("request-list"))
        self.assertEqual(response.status_code, 302)

    def test_end_to_end_over_http(self):
        self.assertEqual(self._register_dan().status_code, 201)
        response = self._create_request()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["request"]["status"], "pending")
        self.assertEqual(body["donors_nearby"], 0)
        self.assertIsNone(body["advisory"])

        response = self._post(self.rita, reverse("request-status", args=["req-1"]), {"status": "searching"})
        self.assertEqual(response.json()["status"], "searching")

        interests_url = reverse("request-interests", args=["req-1"])
        self.assertEqual(self._post(self.dan, interests_url, {"donor_id": "donor-dan"}).status_code, 201)
        duplicate = self._post(self.dan, interests_url, {"donor_id": "donor-dan"})
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["error"], "already_recorded")

        listing = self._get(self.rita, interests_url).json()
        self.assertEqual(listing["count"], 1)
        self.assertEqual(listing["donors"][0]["donor_id"], "donor-dan")
        self.assertNotIn("+15550003", json.dumps(listing))

        response = self._post(self.rita, reverse("request-confirm", args=["req-1"]), {"donor_id": "donor-dan"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["contact_info"], "+15550003")

        response = self._post(self.rita, reverse("request-status", args=["req-1"]), {"status": "fulfilled"})
        self.assertEqual(response.json()["status"], "fulfilled")

    def test_error_mapping(self):
        self._register_dan()
        self._create_request()
        self.assertEqual(self._get(self.sam, reverse("request-detail", args=["req-1"])).status_code, 403)
        self.assertEqual(self._get(self.rita, reverse("request-detail", args=["missing"])).status_code, 404)
        confirm = self._post(self.rita, reverse("request-confirm", args=["req-1"]), {"donor_id": "donor-dan"})
        self.assertEqual(confirm.status_code, 409)
        self.assertEqual(confirm.json()["error"], "not_eligible")
        bad_transition = self._post(self.rita, reverse("request-status", args=["req-1"]), {"status": "fulfilled"})
        self.assertEqual(bad_transition.json()["error"], "invalid_state")

    def test_form_errors_are_400_with_fields(self):
        response = self._create_request(units_required=0, bloodgroup="Q")
        self.assertEqual(response.status_code, 400)
        fields = response.json()["fields"]
        self.assertIn("units_required", fields)
        self.assertIn("bloodgroup", fields)

    def test_malformed_json(self):
        self.client.force_login(self.rita)
        response = self.client.post(reverse("request-list"), data="{", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_duplicate_request_advisory(self):
        self._create_request()
        body = self._create_request(request_id="req-2").json()
        self.assertEqual(body["advisory"]["code"], "duplicate_request")

    def test_public_listing_hides_owner(self):
        self._create_request()
        listing = self._get(self.sam, reverse("request-list")).json()
        self.assertEqual(listing[0]["id"], "req-1")
        self.assertNotIn("owner", listing[0])
        self.assertEqual(self._get(self.sam, reverse("request-list"), {"status": "matched"}).json(), [])

    def test_search_endpoints(self):
        self._register_dan()
        nearby = self._get(self.sam, reverse("search-nearby"), {"bloodgroup": "O-", "location": "springfield"})
        self.assertEqual(nearby.json(), {"count": 1})
        donors = self._get(self.sam, reverse("search-donors"), {"bloodgroup": "O-", "location": "Springfield"})
        self.assertEqual(donors.json()[0]["name"], "Dan")
        self.assertNotIn("contact_info", donors.json()[0])

    def test_candidates_and_statistics(self):
        self._register_dan()
        self._create_request()
        body = self._get(self.rita, reverse("request-candidates", args=["req-1"])).json()
        self.assertEqual([c["donor_id"] for c in body["candidates"]], ["donor-dan"])
        self.assertEqual(body["best_match"]["score"], 5)
        self.assertEqual(self._get(self.rita, reverse("statistics")).status_code, 403)
        stats = self._get(self.admin, reverse("statistics")).json()
        self.assertEqual(stats["total_donors"], 1)

    def test_override_and_matches_are_admin_only(self):
        self._create_request()
        url = reverse("request-override", args=["req-1"])
        self.assertEqual(self._post(self.rita, url, {"status": "expired"}).status_code, 403)
        response = self._post(self.admin, url, {"status": "expired", "reason": "duplicate"})
        self.assertEqual(response.json()["status"], "expired")
        self.assertEqual(self._get(self.admin, reverse("match-list")).json(), [])

    def test_my_requests(self):
        self._create_request()
        mine = self._get(self.rita, reverse("request-mine")).json()
        self.assertEqual([r["id"] for r in mine], ["req-1"])
        self.assertEqual(self._get(self.sam, reverse("request-mine")).json(), [])
