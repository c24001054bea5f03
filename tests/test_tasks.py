"""
Tests for reading file parsing and the Celery billing tasks.
"""

import io
import tempfile
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

import pandas as pd
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from apps.billing.ledger import DjangoLedgerRepository
from apps.billing.models import Bill, BillStatus
from apps.billing.parsers import parse_readings
from apps.billing.tasks import ingest_meter_readings, mark_overdue_bills, send_payment_reminders
from apps.core import messaging
from apps.core.exceptions import ReadingsFileError
from tests.helpers import build_bill, build_customer


class ParseReadingsTests(SimpleTestCase):

    def test_csv_with_camel_case_headers(self):
        source = io.BytesIO(b'accountNumber,newReading\nAT-001 ,1300\n,\n')
        records = parse_readings(source, filename='readings.csv')
        self.assertEqual(records, [
            {'account_number': 'AT-001', 'new_reading': '1300'},
            {'account_number': '', 'new_reading': None},
        ])

    def test_snake_case_headers(self):
        source = io.BytesIO(b'account_number,new_reading\nAT-002,900.5\n')
        records = parse_readings(source, filename='readings.csv')
        self.assertEqual(records[0]['account_number'], 'AT-002')
        self.assertEqual(Decimal(records[0]['new_reading']), Decimal('900.5'))

    def test_missing_columns(self):
        with self.assertRaises(ReadingsFileError):
            parse_readings(io.BytesIO(b'meter,value\nMT-1,3\n'), filename='readings.csv')

    def test_header_only_sheet(self):
        with self.assertRaises(ReadingsFileError):
            parse_readings(io.BytesIO(b'accountNumber,newReading\n'), filename='readings.csv')

    def test_unsupported_type(self):
        with self.assertRaises(ReadingsFileError):
            parse_readings(io.BytesIO(b'whatever'), filename='readings.json')

    def test_excel_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'readings.xlsx'
            pd.DataFrame({
                'accountNumber': ['AT-001', 'AT-002'],
                'newReading': [1300, 900],
            }).to_excel(path, index=False)
            records = parse_readings(path)
        self.assertEqual([r['account_number'] for r in records], ['AT-001', 'AT-002'])
        self.assertEqual(Decimal(str(records[0]['new_reading'])), Decimal('1300'))


class IngestMeterReadingsTaskTests(TestCase):

    def setUp(self):
        repo = DjangoLedgerRepository()
        self.john = repo.add_customer(build_customer())
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def test_ingest_excel_file(self):
        pd.DataFrame({
            'accountNumber': ['AT-001', 'AT-404'],
            'newReading': [1265, 10],
        }).to_excel(Path(self.tmp.name) / 'meter_readings.xlsx', index=False)

        with override_settings(DATA_DIR=self.tmp.name):
            result = ingest_meter_readings.apply().get()

        self.assertEqual(result['status'], 'success')
        self.assertEqual(result['total_rows'], 2)
        self.assertEqual(result['success_count'], 1)
        self.assertEqual(result['error_count'], 1)
        bill = Bill.objects.get()
        self.assertEqual(bill.amount_due, Decimal('97.50'))
        self.assertTrue(bill.period.startswith('Bulk Upload'))

    def test_missing_file(self):
        with override_settings(DATA_DIR=self.tmp.name):
            result = ingest_meter_readings.apply().get()
        self.assertEqual(result['status'], 'error')
        self.assertIn('File not found', result['message'])
        self.assertFalse(Bill.objects.exists())


class OverdueAndReminderTaskTests(TestCase):

    def setUp(self):
        messaging.outbox.clear()
        repo = DjangoLedgerRepository()
        john = repo.add_customer(build_customer())
        today = timezone.localdate()
        self.late = repo.add_bill(build_bill(
            john.pk, status=BillStatus.UNPAID, approved=True,
            due_date=today - timedelta(days=1),
        ))
        self.current = repo.add_bill(build_bill(
            john.pk, status=BillStatus.UNPAID, approved=True,
            due_date=today + timedelta(days=5),
        ))
        self.pending = repo.add_bill(build_bill(john.pk, due_date=date(2020, 1, 1)))

    def test_mark_overdue_bills(self):
        result = mark_overdue_bills.apply().get()
        self.assertEqual(result, {'status': 'success', 'promoted': 1})
        self.assertEqual(Bill.objects.get(pk=self.late.pk).status, BillStatus.OVERDUE)
        self.assertEqual(Bill.objects.get(pk=self.current.pk).status, BillStatus.UNPAID)
        self.assertEqual(Bill.objects.get(pk=self.pending.pk).status, BillStatus.PENDING_APPROVAL)

    def test_send_payment_reminders(self):
        result = send_payment_reminders.apply().get()
        self.assertEqual(result['reminders_sent'], 2)
        self.assertEqual(result['failed_count'], 0)
        self.assertEqual(len(messaging.outbox), 2)
