"""
Tests for sign-up, login, profiles and administrator management.
"""

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from apps.customers.models import Customer

User = get_user_model()

PASSWORD = 'Str0ng-Passw0rd!'


class SignupAPITests(TestCase):
    """Test POST /api/signup."""

    def setUp(self):
        self.client = APIClient()
        self.payload = {
            'name': 'Grace Wanjiku',
            'email': 'Grace@Example.com',
            'phone': '254722000111',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }

    def test_signup_creates_user_and_customer(self):
        response = self.client.post('/api/signup', self.payload, format='json')

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['email'], 'grace@example.com')
        self.assertEqual(data['role'], 'customer')
        self.assertEqual(data['account_number'], 'AT-001')

        customer = Customer.objects.get(user_id=data['id'])
        self.assertEqual(customer.name, 'Grace Wanjiku')
        self.assertEqual(customer.last_reading, 0)
        self.assertRegex(customer.meter_number, r'^MT-\d{3,}$')

    def test_signup_password_mismatch(self):
        self.payload['password_confirm'] = 'Different-Passw0rd!'
        response = self.client.post('/api/signup', self.payload, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('Passwords do not match', response.json()['detail'])
        self.assertFalse(User.objects.exists())

    def test_signup_weak_password(self):
        self.payload['password'] = self.payload['password_confirm'] = '12345678'
        response = self.client.post('/api/signup', self.payload, format='json')
        self.assertEqual(response.status_code, 400)

    def test_signup_duplicate_email(self):
        self.client.post('/api/signup', self.payload, format='json')
        self.payload['email'] = 'grace@example.com'
        response = self.client.post('/api/signup', self.payload, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('already exists', response.json()['detail'])
        self.assertEqual(Customer.objects.count(), 1)

    def test_second_signup_gets_next_account_number(self):
        self.client.post('/api/signup', self.payload, format='json')
        self.payload['email'] = 'other@example.com'
        response = self.client.post('/api/signup', self.payload, format='json')
        self.assertEqual(response.json()['account_number'], 'AT-002')


class LoginAndProfileAPITests(TestCase):

    def setUp(self):
        self.client = APIClient()
        response = self.client.post('/api/signup', {
            'name': 'Grace Wanjiku',
            'email': 'grace@example.com',
            'phone': '254722000111',
            'password': PASSWORD,
            'password_confirm': PASSWORD,
        }, format='json')
        self.user_id = response.json()['id']

    def test_login(self):
        response = self.client.post('/api/login', {
            'email': 'grace@example.com',
            'password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['id'], self.user_id)
        self.assertEqual(response.json()['role'], 'customer')

    def test_login_wrong_password(self):
        response = self.client.post('/api/login', {
            'email': 'grace@example.com',
            'password': 'nope-nope-nope',
        }, format='json')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['code'], 'invalid_credentials')

    def test_get_profile(self):
        response = self.client.get(f'/api/profile/{self.user_id}')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['phone'], '254722000111')
        self.assertEqual(data['account_number'], 'AT-001')

    def test_update_profile(self):
        response = self.client.put(f'/api/profile/{self.user_id}', {
            'name': 'Grace W. Kamau',
            'phone': '254733000222',
        }, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['name'], 'Grace W. Kamau')
        customer = Customer.objects.get(user_id=self.user_id)
        self.assertEqual(customer.phone, '254733000222')
        self.assertEqual(User.objects.get(pk=self.user_id).first_name, 'Grace W. Kamau')

    def test_profile_for_unknown_user(self):
        response = self.client.get('/api/profile/999')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['code'], 'user_not_found')


class AdminManagementAPITests(TestCase):

    def setUp(self):
        self.client = APIClient()

    def test_add_list_and_remove_admin(self):
        response = self.client.post('/api/admins', {
            'name': 'Ops Lead',
            'email': 'ops@example.com',
        }, format='json')
        self.assertEqual(response.status_code, 201)
        admin_id = response.json()['id']
        self.assertEqual(response.json()['role'], 'admin')
        self.assertFalse(User.objects.get(pk=admin_id).has_usable_password())

        response = self.client.get('/api/admins')
        self.assertEqual([a['email'] for a in response.json()], ['ops@example.com'])

        self.assertEqual(self.client.delete(f'/api/admins/{admin_id}').status_code, 204)
        self.assertEqual(self.client.delete(f'/api/admins/{admin_id}').status_code, 404)

    def test_duplicate_admin(self):
        self.client.post('/api/admins', {'name': 'A', 'email': 'ops@example.com'}, format='json')
        response = self.client.post('/api/admins', {'name': 'B', 'email': 'OPS@example.com'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_remove_customer_user_is_refused(self):
        user = User.objects.create_user(username='c@example.com', email='c@example.com')
        response = self.client.delete(f'/api/admins/{user.pk}')
        self.assertEqual(response.status_code, 404)
        self.assertTrue(User.objects.filter(pk=user.pk).exists())
