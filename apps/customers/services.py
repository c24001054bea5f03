"""
Customer service layer.

All customer-related business logic resides here.
Views delegate to this service, no business logic in views.
"""

import logging
import random

from django.utils import timezone

from apps.billing.ledger import DjangoLedgerRepository, LedgerRepository
from apps.core.exceptions import CustomerNotFoundError, DuplicateAccountError
from apps.core.utils import to_decimal
from apps.customers.models import Customer

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'name',
    'account_number',
    'meter_number',
    'phone',
    'last_reading',
    'last_reading_date',
)

_FIELD_LABELS = {
    'account_number': 'Account number',
    'meter_number': 'Meter number',
}


class CustomerService:
    """Service class for customer-related operations."""

    def __init__(self, repository: LedgerRepository = None):
        self.repository = repository or DjangoLedgerRepository()

    def get_customer(self, customer_id) -> Customer:
        """
        Retrieve a customer by ID.

        Raises:
            CustomerNotFoundError: If no customer has this ID.
        """
        customer = self.repository.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(
                detail=f"Customer with ID {customer_id} not found."
            )
        return customer

    def list_customers(self) -> list:
        return self.repository.list_customers()

    def create_customer(self, data: dict) -> Customer:
        """
        Create a customer from validated data.

        ``last_reading`` defaults to 0 and ``last_reading_date`` to today.

        Raises:
            DuplicateAccountError: If the account or meter number is taken.
        """
        self._check_unique(data['account_number'], data['meter_number'])

        customer = Customer(
            name=data['name'],
            account_number=data['account_number'],
            meter_number=data['meter_number'],
            phone=data['phone'],
            last_reading=to_decimal(data.get('last_reading', 0)),
            last_reading_date=data.get('last_reading_date') or timezone.localdate(),
            user=data.get('user'),
        )
        with self.repository.atomic():
            self.repository.add_customer(customer)

        logger.info(
            "Created customer %s (ID: %s, account %s, meter %s)",
            customer.name,
            customer.pk,
            customer.account_number,
            customer.meter_number,
        )
        return customer

    def update_customer(self, customer_id, data: dict) -> Customer:
        """
        Apply an administrative edit to a customer.

        Only fields in EDITABLE_FIELDS are written. Moving ``last_reading``
        backwards is allowed as a trusted override and logged.

        Raises:
            CustomerNotFoundError: If no customer has this ID.
            DuplicateAccountError: If the new account or meter number is taken.
        """
        with self.repository.atomic():
            customer = self.repository.get_customer(customer_id, for_update=True)
            if customer is None:
                raise CustomerNotFoundError(
                    detail=f"Customer with ID {customer_id} not found."
                )

            self._check_unique(
                data.get('account_number', customer.account_number),
                data.get('meter_number', customer.meter_number),
                exclude_id=customer.pk,
            )

            previous_reading = customer.last_reading
            for field in EDITABLE_FIELDS:
                if field in data:
                    setattr(customer, field, data[field])
            if 'last_reading' in data:
                customer.last_reading = to_decimal(data['last_reading'])
                if customer.last_reading < previous_reading:
                    logger.warning(
                        "Customer %s: last_reading moved back from %s to %s by admin edit",
                        customer.pk,
                        previous_reading,
                        customer.last_reading,
                    )

            if not self.repository.save_customer(customer):
                raise CustomerNotFoundError(
                    detail=f"Customer with ID {customer_id} not found."
                )

        logger.info("Updated customer %s (ID: %s)", customer.name, customer.pk)
        return customer

    def delete_customer(self, customer_id) -> bool:
        """Delete a customer and all of its bills. False if it did not exist."""
        with self.repository.atomic():
            deleted = self.repository.delete_customer(customer_id)
        if deleted:
            logger.info("Deleted customer %s and its bills", customer_id)
        return deleted

    def next_account_number(self) -> str:
        """First free ``AT-NNN`` number, starting after the customer count."""
        sequence = len(self.repository.list_customers()) + 1
        while True:
            candidate = f"AT-{sequence:03d}"
            if self.repository.find_customer_conflict(candidate, None) is None:
                return candidate
            sequence += 1

    def next_meter_number(self) -> str:
        """A random free ``MT-NNN`` meter number."""
        taken = {c.meter_number for c in self.repository.list_customers()}
        free = [n for n in range(100, 1000) if f"MT-{n}" not in taken]
        if free:
            return f"MT-{random.choice(free)}"
        sequence = 1000
        while f"MT-{sequence}" in taken:
            sequence += 1
        return f"MT-{sequence}"

    def _check_unique(self, account_number, meter_number, exclude_id=None):
        clash = self.repository.find_customer_conflict(
            account_number, meter_number, exclude_id=exclude_id,
        )
        if clash is not None:
            value = account_number if clash == 'account_number' else meter_number
            raise DuplicateAccountError(
                detail=f"{_FIELD_LABELS[clash]} {value} is already in use."
            )
