"""
Shared builders for the test suite.
"""

from datetime import date
from decimal import Decimal

from apps.billing.ledger import InMemoryLedgerRepository
from apps.billing.models import Bill, BillStatus
from apps.customers.models import Customer


def build_customer(**overrides):
    """An unsaved customer with sensible defaults."""
    fields = {
        'name': 'John Doe',
        'account_number': 'AT-001',
        'meter_number': 'MT-123',
        'phone': '254712345678',
        'last_reading': Decimal('1200'),
        'last_reading_date': date(2024, 7, 1),
    }
    fields.update(overrides)
    return Customer(**fields)


def build_bill(customer_id, **overrides):
    """An unsaved, consistent bill for ``customer_id``."""
    fields = {
        'customer_id': customer_id,
        'period': 'August 2024',
        'previous_reading': Decimal('1200'),
        'current_reading': Decimal('1265'),
        'consumption': Decimal('65'),
        'rate': Decimal('1.50'),
        'amount_due': Decimal('97.50'),
        'due_date': date(2024, 9, 15),
        'status': BillStatus.PENDING_APPROVAL,
        'approved': False,
    }
    fields.update(overrides)
    return Bill(**fields)


def seeded_ledger():
    """
    In-memory ledger with two customers and four bills.

    John Doe (id 1, last reading 1200) owns bills 1, 2 and 4;
    Jane Smith (id 2, last reading 850) owns bill 3, still pending approval.
    """
    repo = InMemoryLedgerRepository()
    john = repo.add_customer(build_customer())
    jane = repo.add_customer(build_customer(
        name='Jane Smith',
        account_number='AT-002',
        meter_number='MT-456',
        phone='254787654321',
        last_reading=Decimal('850'),
    ))
    repo.add_bill(build_bill(
        john.pk, period='July 2024',
        previous_reading=Decimal('1150'), current_reading=Decimal('1200'),
        consumption=Decimal('50'), amount_due=Decimal('75.00'),
        due_date=date(2024, 8, 15), status=BillStatus.PAID, approved=True,
    ))
    repo.add_bill(build_bill(
        john.pk, status=BillStatus.UNPAID, approved=True,
    ))
    repo.add_bill(build_bill(
        jane.pk,
        previous_reading=Decimal('850'), current_reading=Decimal('890'),
        consumption=Decimal('40'), amount_due=Decimal('60.00'),
    ))
    repo.add_bill(build_bill(
        john.pk, period='June 2024',
        previous_reading=Decimal('1100'), current_reading=Decimal('1150'),
        consumption=Decimal('50'), amount_due=Decimal('75.00'),
        due_date=date(2024, 7, 15), status=BillStatus.PAID, approved=True,
    ))
    return repo
