"""
Tests for SMS payment reminders.
"""

from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from apps.billing.models import BillStatus
from apps.billing.notifications import ReminderService, format_reminder
from apps.core import messaging
from apps.core.exceptions import SmsDeliveryError
from apps.core.messaging import BaseSmsBackend, LocmemSmsBackend, get_sms_backend
from tests.helpers import build_bill, build_customer, seeded_ledger


class FlakyBackend(BaseSmsBackend):
    """Fails for the phone numbers it is given, delivers the rest."""

    def __init__(self, refuse=(), explode=(), disconnect=()):
        super().__init__(latency=0)
        self.refuse = set(refuse)
        self.explode = set(explode)
        self.disconnect = set(disconnect)
        self.sent = []

    def send(self, phone, message):
        if phone in self.explode:
            raise SmsDeliveryError('Carrier timeout.')
        if phone in self.disconnect:
            raise ConnectionError('carrier socket reset')
        if phone in self.refuse:
            return False
        self.sent.append((phone, message))
        return True


class FormatReminderTests(SimpleTestCase):

    def test_message_text(self):
        message = format_reminder('John Doe', 'August 2024', Decimal('97.5'), date(2024, 9, 15))
        self.assertEqual(
            message,
            'Hello John Doe, this is a reminder that your AquaTrack bill for '
            'August 2024 of KES 97.50 is due on 15/09/2024. Thank you.',
        )


class ReminderServiceTests(SimpleTestCase):

    def setUp(self):
        messaging.outbox.clear()
        self.repo = seeded_ledger()

    def test_only_approved_outstanding_bills_are_reminded(self):
        result = ReminderService(self.repo, LocmemSmsBackend()).send_payment_reminders()

        self.assertEqual(result, {'reminders_sent': 1, 'failed_count': 0, 'errors': []})
        self.assertEqual(len(messaging.outbox), 1)
        phone, message = messaging.outbox[0]
        self.assertEqual(phone, '254712345678')
        self.assertIn('KES 97.50', message)
        self.assertIn('15/09/2024', message)

    def test_overdue_bills_are_reminded(self):
        bill = self.repo.get_bill(2)
        bill.status = BillStatus.OVERDUE
        self.repo.save_bill(bill)
        result = ReminderService(self.repo, LocmemSmsBackend()).send_payment_reminders()
        self.assertEqual(result['reminders_sent'], 1)

    def test_nothing_to_remind(self):
        self.repo.delete_bill(2)
        result = ReminderService(self.repo, LocmemSmsBackend()).send_payment_reminders()
        self.assertEqual(result['reminders_sent'], 0)
        self.assertEqual(messaging.outbox, [])

    def test_failures_do_not_stop_the_run(self):
        third = self.repo.add_customer(build_customer(
            name='Ali Hassan', account_number='AT-003', meter_number='MT-789',
            phone='254700000003',
        ))
        self.repo.add_bill(build_bill(
            third.pk, status=BillStatus.OVERDUE, approved=True, due_date=date(2024, 9, 1),
        ))
        # Jane's pending bill, approved so it is reminded too
        jane_bill = self.repo.get_bill(3)
        jane_bill.approved = True
        jane_bill.status = BillStatus.UNPAID
        self.repo.save_bill(jane_bill)

        backend = FlakyBackend(refuse={'254712345678'}, explode={'254787654321'})
        result = ReminderService(self.repo, backend).send_payment_reminders()

        self.assertEqual(result['reminders_sent'], 1)
        self.assertEqual(result['failed_count'], 2)
        self.assertEqual(backend.sent[0][0], '254700000003')
        reasons = {error['phone']: error['reason'] for error in result['errors']}
        self.assertEqual(reasons['254712345678'], 'Backend refused the message.')
        self.assertEqual(reasons['254787654321'], 'Carrier timeout.')
        self.assertEqual({error['bill_id'] for error in result['errors']}, {2, 3})

    def test_unexpected_backend_error_does_not_stop_the_run(self):
        """A carrier client error is recorded and later customers still get their SMS."""
        third = self.repo.add_customer(build_customer(
            name='Ali Hassan', account_number='AT-003', meter_number='MT-789',
            phone='254700000003',
        ))
        self.repo.add_bill(build_bill(
            third.pk, status=BillStatus.UNPAID, approved=True, due_date=date(2024, 9, 1),
        ))

        backend = FlakyBackend(disconnect={'254712345678'})
        with self.assertLogs('apps.billing.notifications', level='ERROR'):
            result = ReminderService(self.repo, backend).send_payment_reminders()

        self.assertEqual(result['reminders_sent'], 1)
        self.assertEqual(result['failed_count'], 1)
        self.assertEqual([phone for phone, _ in backend.sent], ['254700000003'])
        self.assertEqual(result['errors'], [{
            'bill_id': 2,
            'phone': '254712345678',
            'reason': 'ConnectionError: carrier socket reset',
        }])


class SmsBackendTests(SimpleTestCase):

    def setUp(self):
        messaging.outbox.clear()

    def test_locmem_backend_from_settings(self):
        backend = get_sms_backend()
        self.assertIsInstance(backend, LocmemSmsBackend)
        self.assertTrue(backend.send('254700000000', 'hi'))
        self.assertEqual(messaging.outbox, [('254700000000', 'hi')])

    @override_settings(SMS_BACKEND='apps.core.messaging.ConsoleSmsBackend')
    def test_console_backend_logs(self):
        backend = get_sms_backend(latency=0)
        with self.assertLogs('apps.core.messaging', level='INFO') as logs:
            self.assertTrue(backend.send('254700000000', 'hello'))
        self.assertIn('hello', logs.output[0])

    def test_base_backend_is_abstract(self):
        with self.assertRaises(NotImplementedError):
            BaseSmsBackend(latency=0).send('1', 'x')
