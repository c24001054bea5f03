"""
Tests for API key authentication middleware and role checks.
"""

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from apps.billing.ledger import DjangoLedgerRepository
from tests.helpers import build_customer

API_KEYS = {'admin-key-123': 'admin', 'customer-key-456': 'customer'}


@override_settings(API_KEYS=API_KEYS)
class APIKeyAuthTests(TestCase):
    """Test X-API-KEY header authentication."""

    def setUp(self):
        self.client = APIClient()
        self.customer = DjangoLedgerRepository().add_customer(build_customer())

    def test_missing_api_key_returns_401(self):
        """Request without X-API-KEY → 401."""
        response = self.client.get('/api/customers')
        self.assertEqual(response.status_code, 401)
        data = response.json()
        self.assertTrue(data['error'])
        self.assertIn('Authentication required', data['detail'])

    def test_invalid_api_key_returns_403(self):
        """Request with wrong X-API-KEY → 403."""
        response = self.client.get('/api/customers', HTTP_X_API_KEY='wrong-key')
        self.assertEqual(response.status_code, 403)
        self.assertIn('Invalid API key', response.json()['detail'])

    def test_admin_key_passes(self):
        response = self.client.get('/api/customers', HTTP_X_API_KEY='admin-key-123')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)

    def test_customer_key_refused_on_admin_endpoint(self):
        response = self.client.get('/api/customers', HTTP_X_API_KEY='customer-key-456')
        self.assertEqual(response.status_code, 403)
        self.assertIn('Administrator access required', response.json()['detail'])

    def test_customer_key_can_submit_reading(self):
        response = self.client.post(
            f'/api/customers/{self.customer.pk}/readings',
            {'new_reading': '1265'},
            format='json',
            HTTP_X_API_KEY='customer-key-456',
        )
        self.assertEqual(response.status_code, 201)

    def test_customer_key_cannot_approve(self):
        response = self.client.post('/api/bills/1/approve', HTTP_X_API_KEY='customer-key-456')
        self.assertEqual(response.status_code, 403)

    def test_health_endpoint_exempt(self):
        """Health check needs no API key."""
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')

    def test_health_prefix_does_not_open_other_paths(self):
        """Only the /health/ route is exempt, not paths that merely start with 'health'."""
        for path in ('/healthcheck-admin', '/health-export/customers'):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path).status_code, 401)


class NoAPIKeysConfiguredTests(TestCase):
    """With API_KEYS empty every caller acts as an administrator."""

    def test_admin_endpoint_open(self):
        response = APIClient().get('/api/dashboard/stats')
        self.assertEqual(response.status_code, 200)
