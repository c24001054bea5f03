"""
Billing service layer.

Contains the bill ledger operations, the meter-reading-to-bill derivation
and the approval/payment lifecycle. This is the core business logic of the
billing service.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.utils import timezone

from apps.billing import state_machine
from apps.billing.ledger import DjangoLedgerRepository, LedgerRepository
from apps.billing.models import OUTSTANDING_STATUSES, Bill, BillStatus
from apps.core.exceptions import (
    BillNotFoundError,
    CustomerNotFoundError,
    IneligibleTransitionError,
    InvalidReadingError,
)
from apps.core.utils import (
    TWO_PLACES,
    calculate_amount_due,
    calculate_consumption,
    standard_rate,
    to_decimal,
    to_reading,
)

logger = logging.getLogger(__name__)

BILL_EDITABLE_FIELDS = (
    'period',
    'previous_reading',
    'current_reading',
    'consumption',
    'rate',
    'amount_due',
    'due_date',
    'status',
    'approved',
)


class BillService:
    """Ledger operations on bills, plus the read models built on them."""

    def __init__(self, repository: LedgerRepository = None):
        self.repository = repository or DjangoLedgerRepository()

    def get_bill(self, bill_id) -> Bill:
        bill = self.repository.get_bill(bill_id)
        if bill is None:
            raise BillNotFoundError(detail=f"Bill with ID {bill_id} not found.")
        return bill

    def create_bill(self, data: dict) -> Bill:
        """
        Create a bill directly (administrative entry).

        ``consumption`` and ``amount_due`` are derived from the readings and
        rate unless the caller supplies them, in which case they are trusted.
        ``rate`` defaults to the standard rate, ``approved`` to False and
        ``status`` to Pending Approval.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
            InvalidReadingError: If current_reading <= previous_reading.
        """
        customer_id = data['customer_id']
        if self.repository.get_customer(customer_id) is None:
            raise CustomerNotFoundError(
                detail=f"Customer with ID {customer_id} not found."
            )

        previous_reading = to_decimal(data['previous_reading'])
        current_reading = to_decimal(data['current_reading'])
        try:
            derived_consumption = calculate_consumption(previous_reading, current_reading)
        except ValueError as exc:
            raise InvalidReadingError(detail=str(exc))

        rate = to_decimal(data['rate']) if data.get('rate') is not None else standard_rate()
        consumption = data.get('consumption')
        consumption = derived_consumption if consumption is None else to_decimal(consumption)
        amount_due = data.get('amount_due')
        if amount_due is None:
            amount_due = calculate_amount_due(consumption, rate)

        bill = Bill(
            customer_id=customer_id,
            period=data['period'],
            previous_reading=previous_reading,
            current_reading=current_reading,
            consumption=consumption,
            rate=rate,
            amount_due=to_decimal(amount_due),
            due_date=data['due_date'],
            status=data.get('status') or BillStatus.PENDING_APPROVAL,
            approved=bool(data.get('approved', False)),
        )
        self._warn_on_override(bill)

        with self.repository.atomic():
            self.repository.add_bill(bill)

        logger.info(
            "Bill #%s created for customer %s: period=%s, consumption=%s, amount=%s",
            bill.pk,
            customer_id,
            bill.period,
            bill.consumption,
            bill.amount_due,
        )
        return bill

    def update_bill(self, bill_id, data: dict) -> Bill:
        """
        Overwrite bill fields directly.

        This is the administrative correction path: it bypasses the status
        state machine and the derivation formulas. Resulting inconsistencies
        are logged, not rejected.

        Raises:
            BillNotFoundError: If the bill does not exist.
        """
        with self.repository.atomic():
            bill = self.repository.get_bill(bill_id, for_update=True)
            if bill is None:
                raise BillNotFoundError(detail=f"Bill with ID {bill_id} not found.")

            for field in BILL_EDITABLE_FIELDS:
                if field in data:
                    value = data[field]
                    if field in ('previous_reading', 'current_reading',
                                 'consumption', 'rate', 'amount_due'):
                        value = to_decimal(value)
                    setattr(bill, field, value)
            self._warn_on_override(bill)

            if not self.repository.save_bill(bill):
                raise BillNotFoundError(detail=f"Bill with ID {bill_id} not found.")

        logger.info("Bill #%s updated by admin edit: %s", bill.pk, sorted(data))
        return bill

    def delete_bill(self, bill_id) -> bool:
        with self.repository.atomic():
            deleted = self.repository.delete_bill(bill_id)
        if deleted:
            logger.info("Bill #%s deleted", bill_id)
        return deleted

    def list_bills_for_customer(self, customer_id) -> list:
        """
        Bills of one customer, newest due date first.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        if self.repository.get_customer(customer_id) is None:
            raise CustomerNotFoundError(
                detail=f"Customer with ID {customer_id} not found."
            )
        return self.repository.list_bills(customer_id=customer_id)

    def list_all_bills(self) -> list:
        """Every bill with customer name and account number, newest due date first."""
        return self.repository.list_bills_with_customer()

    def dashboard_stats(self) -> dict:
        """Headline numbers for the admin dashboard."""
        outstanding = self.repository.list_bills(
            statuses=OUTSTANDING_STATUSES, approved=True,
        )
        return {
            'total_customers': len(self.repository.list_customers()),
            'bills_awaiting_payment': len(outstanding),
            'total_overdue_amount': sum(
                (bill.amount_due for bill in outstanding), Decimal('0.00'),
            ),
        }

    def meter_metrics(self) -> list:
        """Total consumption per meter, highest first."""
        totals = {}
        for bill in self.repository.list_bills():
            totals[bill.customer_id] = totals.get(bill.customer_id, Decimal('0')) + bill.consumption

        metrics = [
            {
                'meter_number': customer.meter_number,
                'customer_name': customer.name,
                'customer_account_number': customer.account_number,
                'total_consumption': totals.get(customer.pk, Decimal('0')),
            }
            for customer in self.repository.list_customers()
        ]
        metrics.sort(key=lambda m: m['total_consumption'], reverse=True)
        return metrics

    def usage_analytics(self, customer_id) -> dict:
        """
        Consumption summary for one customer over all of its bills.

        With no bills the averages are 0 and the highest period is 'N/A'.
        ``history`` lists the bills oldest first, for charting.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
        """
        bills = self.list_bills_for_customer(customer_id)
        if not bills:
            return {
                'customer_id': customer_id,
                'bill_count': 0,
                'total_consumption': Decimal('0.00'),
                'average_consumption': Decimal('0.00'),
                'highest_consumption': Decimal('0.00'),
                'highest_consumption_period': 'N/A',
                'history': [],
            }

        total = sum((bill.consumption for bill in bills), Decimal('0'))
        # Newest first, so ties go to the most recent bill
        highest = max(bills, key=lambda bill: bill.consumption)
        return {
            'customer_id': customer_id,
            'bill_count': len(bills),
            'total_consumption': total,
            'average_consumption': (total / len(bills)).quantize(
                TWO_PLACES, rounding=ROUND_HALF_UP,
            ),
            'highest_consumption': highest.consumption,
            'highest_consumption_period': highest.period,
            'history': [
                {
                    'period': bill.period,
                    'due_date': bill.due_date,
                    'consumption': bill.consumption,
                }
                for bill in reversed(bills)
            ],
        }

    @staticmethod
    def _warn_on_override(bill):
        for problem in state_machine.override_warnings(bill):
            logger.warning("Bill #%s override: %s", bill.pk or '(new)', problem)


class MeterReadingService:
    """Turns meter readings into bills and advances each customer's checkpoint."""

    def __init__(self, repository: LedgerRepository = None):
        self.repository = repository or DjangoLedgerRepository()

    def submit_reading(self, customer_id, new_reading, rate=None) -> Bill:
        """
        Bill a customer for a new meter reading.

        Steps:
            1. Lock and load the customer
            2. Require new_reading > last_reading
            3. Derive consumption and amount due
            4. Create the bill in Pending Approval
            5. Advance the customer's last reading to new_reading

        Args:
            customer_id: Customer's primary key.
            new_reading: Meter reading in m³.
            rate: Price per m³; the standard rate when omitted.

        Returns:
            The new Bill.

        Raises:
            CustomerNotFoundError: If the customer does not exist.
            InvalidReadingError: If the reading does not advance.
        """
        today = timezone.localdate()
        with self.repository.atomic():
            customer = self.repository.get_customer(customer_id, for_update=True)
            if customer is None:
                raise CustomerNotFoundError(
                    detail=f"Customer with ID {customer_id} not found."
                )
            bill = self._bill_reading(
                customer,
                new_reading,
                rate=rate,
                period=today.strftime('%B %Y'),
                due_date=today + relativedelta(days=settings.BILLING['READING_DUE_DAYS']),
                today=today,
            )
        return bill

    def submit_bulk(self, records: Iterable[dict], rate=None) -> dict:
        """
        Bill a batch of ``{account_number, new_reading}`` records.

        Rows are independent: a bad row is recorded in ``errors`` and the
        rest carry on. Rows already billed stay billed.

        Returns:
            Dict with success_count, error_count and errors
            (a list of {account_number, reason}).
        """
        today = timezone.localdate()
        period = f"Bulk Upload {today.strftime('%d/%m/%Y')}"
        due_date = today + relativedelta(days=settings.BILLING['BULK_DUE_DAYS'])
        result = {'success_count': 0, 'error_count': 0, 'errors': []}

        for record in records:
            account_number = str(record.get('account_number', '')).strip()
            try:
                with self.repository.atomic():
                    customer = self.repository.get_customer_by_account_number(
                        account_number, for_update=True,
                    )
                    if customer is None:
                        raise CustomerNotFoundError(detail='Account number not found.')
                    self._bill_reading(
                        customer,
                        record.get('new_reading'),
                        rate=rate,
                        period=period,
                        due_date=due_date,
                        today=today,
                    )
            except (CustomerNotFoundError, InvalidReadingError) as exc:
                result['error_count'] += 1
                result['errors'].append({
                    'account_number': account_number,
                    'reason': str(exc.detail),
                })
                continue
            result['success_count'] += 1

        logger.info(
            "Bulk readings processed: %d billed, %d rejected",
            result['success_count'],
            result['error_count'],
        )
        return result

    def _bill_reading(self, customer, new_reading, rate, period, due_date, today) -> Bill:
        try:
            new_reading = to_decimal(new_reading)
        except ValueError:
            raise InvalidReadingError(detail=f"Invalid reading value: {new_reading!r}.")
        try:
            new_reading = to_reading(new_reading)
        except ValueError as exc:
            raise InvalidReadingError(detail=str(exc))

        last_reading = to_decimal(customer.last_reading)
        try:
            consumption = calculate_consumption(last_reading, new_reading)
        except ValueError as exc:
            logger.info("Customer %s: reading rejected: %s", customer.pk, exc)
            raise InvalidReadingError(detail=str(exc))

        rate = standard_rate() if rate is None else to_decimal(rate)
        bill = Bill(
            customer_id=customer.pk,
            period=period,
            previous_reading=last_reading,
            current_reading=new_reading,
            consumption=consumption,
            rate=rate,
            amount_due=calculate_amount_due(consumption, rate),
            due_date=due_date,
            status=BillStatus.PENDING_APPROVAL,
            approved=False,
        )
        self.repository.add_bill(bill)

        customer.last_reading = new_reading
        customer.last_reading_date = today
        self.repository.save_customer(customer)

        logger.info(
            "Bill #%s created for customer %s: reading %s -> %s, consumption=%s, amount=%s",
            bill.pk,
            customer.pk,
            last_reading,
            new_reading,
            consumption,
            bill.amount_due,
        )
        return bill


class BillLifecycleService:
    """Approval, payment and overdue promotion of bills."""

    def __init__(self, repository: LedgerRepository = None):
        self.repository = repository or DjangoLedgerRepository()

    def approve(self, bill_id) -> Bill:
        """
        Approve a bill. Pending bills become Unpaid; re-approval is a no-op.

        Raises:
            BillNotFoundError: If the bill does not exist.
        """
        with self.repository.atomic():
            bill = self.repository.get_bill(bill_id, for_update=True)
            if bill is None:
                raise BillNotFoundError(detail=f"Bill with ID {bill_id} not found.")
            state_machine.approve(bill)
            self.repository.save_bill(bill)

        logger.info("Bill #%s approved, status=%s", bill.pk, bill.status)
        return bill

    def pay(self, bill_id, phone) -> bool:
        """
        Settle a bill through the simulated mobile-money flow.

        Returns:
            True if the bill was approved, not yet paid and is now Paid;
            False otherwise (nothing is changed).
        """
        logger.info("Simulating mobile money payment for bill %s from %s", bill_id, phone)
        return self._settle(bill_id, 'payment')

    def mark_paid(self, bill_id) -> bool:
        """Administrative settlement, same eligibility as pay()."""
        return self._settle(bill_id, 'manual settlement')

    def mark_overdue(self, today=None) -> int:
        """Promote approved Unpaid bills past their due date. Returns the count."""
        today = today or timezone.localdate()
        promoted = 0
        with self.repository.atomic():
            for bill in self.repository.list_bills(
                statuses=[BillStatus.UNPAID], approved=True,
            ):
                if bill.due_date >= today:
                    continue
                state_machine.mark_overdue(bill)
                self.repository.save_bill(bill)
                promoted += 1
        if promoted:
            logger.info("Marked %d bill(s) overdue", promoted)
        return promoted

    def _settle(self, bill_id, how) -> bool:
        with self.repository.atomic():
            bill = self.repository.get_bill(bill_id, for_update=True)
            if bill is None:
                logger.info("Bill %s %s refused: bill not found", bill_id, how)
                return False
            try:
                state_machine.settle(bill)
            except IneligibleTransitionError as exc:
                logger.info("Bill %s %s refused: %s", bill_id, how, exc.detail)
                return False
            self.repository.save_bill(bill)

        logger.info("Bill #%s paid via %s", bill.pk, how)
        return True
