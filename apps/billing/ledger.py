"""
Ledger repositories.

The services never talk to the ORM or to module-level state directly; they
go through a LedgerRepository. DjangoLedgerRepository is what the API and
the Celery tasks use. InMemoryLedgerRepository keeps unsaved model instances
in dictionaries and is used by unit tests and local demos.
"""

import copy
import itertools
from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Iterable, List, Optional

from django.db import transaction
from django.db.models import F

from apps.billing.models import Bill
from apps.customers.models import Customer


class LedgerRepository(ABC):
    """Storage for customers and their bills."""

    @abstractmethod
    def atomic(self):
        """Context manager scoping a unit of work."""

    # Customers

    @abstractmethod
    def get_customer(self, customer_id, for_update=False) -> Optional[Customer]:
        """Customer by id, or None. ``for_update`` locks it inside atomic()."""

    @abstractmethod
    def get_customer_by_account_number(self, account_number, for_update=False) -> Optional[Customer]:
        """Customer by account number, or None."""

    @abstractmethod
    def list_customers(self) -> List[Customer]:
        """All customers ordered by account number."""

    @abstractmethod
    def find_customer_conflict(self, account_number, meter_number, exclude_id=None) -> Optional[str]:
        """Name of the first unique field already used by another customer."""

    @abstractmethod
    def add_customer(self, customer: Customer) -> Customer:
        """Store a new customer and assign its id."""

    @abstractmethod
    def save_customer(self, customer: Customer) -> bool:
        """Replace an existing customer. False if its id is unknown."""

    @abstractmethod
    def delete_customer(self, customer_id) -> bool:
        """Remove a customer and all of its bills."""

    # Bills

    @abstractmethod
    def get_bill(self, bill_id, for_update=False) -> Optional[Bill]:
        """Bill by id, or None."""

    @abstractmethod
    def add_bill(self, bill: Bill) -> Bill:
        """Store a new bill and assign its id."""

    @abstractmethod
    def save_bill(self, bill: Bill) -> bool:
        """Replace an existing bill. False if its id is unknown."""

    @abstractmethod
    def delete_bill(self, bill_id) -> bool:
        """Remove a bill."""

    @abstractmethod
    def list_bills(self, customer_id=None, statuses: Iterable[str] = None,
                   approved: Optional[bool] = None) -> List[Bill]:
        """Bills matching the filters, newest due date first."""

    @abstractmethod
    def list_bills_with_customer(self, statuses: Iterable[str] = None,
                                 approved: Optional[bool] = None) -> List[Bill]:
        """
        Like list_bills, with ``customer_name``, ``customer_account_number``
        and ``customer_phone`` set on every bill.
        """


class DjangoLedgerRepository(LedgerRepository):
    """Ledger backed by the Django ORM."""

    def atomic(self):
        return transaction.atomic()

    def _customers(self, for_update):
        qs = Customer.objects.all()
        if for_update:
            qs = qs.select_for_update()
        return qs

    def get_customer(self, customer_id, for_update=False):
        return self._customers(for_update).filter(pk=customer_id).first()

    def get_customer_by_account_number(self, account_number, for_update=False):
        return self._customers(for_update).filter(
            account_number=account_number,
        ).first()

    def list_customers(self):
        return list(Customer.objects.order_by('account_number'))

    def find_customer_conflict(self, account_number, meter_number, exclude_id=None):
        qs = Customer.objects.all()
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if qs.filter(account_number=account_number).exists():
            return 'account_number'
        if qs.filter(meter_number=meter_number).exists():
            return 'meter_number'
        return None

    def add_customer(self, customer):
        customer.save(force_insert=True)
        return customer

    def save_customer(self, customer):
        if customer.pk is None or not Customer.objects.filter(pk=customer.pk).exists():
            return False
        customer.save()
        return True

    def delete_customer(self, customer_id):
        _, per_model = Customer.objects.filter(pk=customer_id).delete()
        return per_model.get(Customer._meta.label, 0) > 0

    def get_bill(self, bill_id, for_update=False):
        qs = Bill.objects.all()
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(pk=bill_id).first()

    def add_bill(self, bill):
        bill.save(force_insert=True)
        return bill

    def save_bill(self, bill):
        if bill.pk is None or not Bill.objects.filter(pk=bill.pk).exists():
            return False
        bill.save()
        return True

    def delete_bill(self, bill_id):
        deleted, _ = Bill.objects.filter(pk=bill_id).delete()
        return deleted > 0

    def _bills(self, customer_id, statuses, approved):
        qs = Bill.objects.all()
        if customer_id is not None:
            qs = qs.filter(customer_id=customer_id)
        if statuses is not None:
            qs = qs.filter(status__in=list(statuses))
        if approved is not None:
            qs = qs.filter(approved=approved)
        return qs.order_by('-due_date', '-pk')

    def list_bills(self, customer_id=None, statuses=None, approved=None):
        return list(self._bills(customer_id, statuses, approved))

    def list_bills_with_customer(self, statuses=None, approved=None):
        qs = self._bills(None, statuses, approved).annotate(
            customer_name=F('customer__name'),
            customer_account_number=F('customer__account_number'),
            customer_phone=F('customer__phone'),
        )
        return list(qs)


class InMemoryLedgerRepository(LedgerRepository):
    """
    Ledger held in process memory.

    Stored instances are copies, so a caller mutating an object it fetched
    changes nothing until it calls save_*. Not safe for concurrent writers.
    """

    def __init__(self, customers=(), bills=()):
        self._customers = {}
        self._bills = {}
        self._customer_ids = itertools.count(1)
        self._bill_ids = itertools.count(1)
        for customer in customers:
            self.add_customer(customer)
        for bill in bills:
            self.add_bill(bill)

    def atomic(self):
        return nullcontext()

    def get_customer(self, customer_id, for_update=False):
        customer = self._customers.get(_as_id(customer_id))
        return copy.copy(customer) if customer else None

    def get_customer_by_account_number(self, account_number, for_update=False):
        for customer in self._customers.values():
            if customer.account_number == account_number:
                return copy.copy(customer)
        return None

    def list_customers(self):
        return [
            copy.copy(c)
            for c in sorted(self._customers.values(), key=lambda c: c.account_number)
        ]

    def find_customer_conflict(self, account_number, meter_number, exclude_id=None):
        exclude_id = _as_id(exclude_id)
        others = [c for c in self._customers.values() if c.pk != exclude_id]
        if any(c.account_number == account_number for c in others):
            return 'account_number'
        if any(c.meter_number == meter_number for c in others):
            return 'meter_number'
        return None

    def add_customer(self, customer):
        if customer.pk is None:
            customer.pk = next(self._customer_ids)
        self._customers[customer.pk] = copy.copy(customer)
        return customer

    def save_customer(self, customer):
        if customer.pk not in self._customers:
            return False
        self._customers[customer.pk] = copy.copy(customer)
        return True

    def delete_customer(self, customer_id):
        customer_id = _as_id(customer_id)
        if self._customers.pop(customer_id, None) is None:
            return False
        self._bills = {
            pk: bill for pk, bill in self._bills.items()
            if bill.customer_id != customer_id
        }
        return True

    def get_bill(self, bill_id, for_update=False):
        bill = self._bills.get(_as_id(bill_id))
        return copy.copy(bill) if bill else None

    def add_bill(self, bill):
        if bill.pk is None:
            bill.pk = next(self._bill_ids)
        self._bills[bill.pk] = copy.copy(bill)
        return bill

    def save_bill(self, bill):
        if bill.pk not in self._bills:
            return False
        self._bills[bill.pk] = copy.copy(bill)
        return True

    def delete_bill(self, bill_id):
        return self._bills.pop(_as_id(bill_id), None) is not None

    def list_bills(self, customer_id=None, statuses=None, approved=None):
        customer_id = _as_id(customer_id)
        statuses = set(statuses) if statuses is not None else None
        bills = [
            bill for bill in self._bills.values()
            if (customer_id is None or bill.customer_id == customer_id)
            and (statuses is None or bill.status in statuses)
            and (approved is None or bill.approved == approved)
        ]
        bills.sort(key=lambda b: (b.due_date, b.pk), reverse=True)
        return [copy.copy(b) for b in bills]

    def list_bills_with_customer(self, statuses=None, approved=None):
        bills = self.list_bills(statuses=statuses, approved=approved)
        for bill in bills:
            customer = self._customers.get(bill.customer_id)
            bill.customer_name = customer.name if customer else None
            bill.customer_account_number = customer.account_number if customer else None
            bill.customer_phone = customer.phone if customer else None
        return bills


def _as_id(value):
    """Normalise ids given as strings (URL kwargs, CSV cells) to int."""
    if value is None or isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return value
