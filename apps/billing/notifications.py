"""
Payment reminders.

Sends one SMS per approved bill that is Unpaid or Overdue. Messages go out
one after another; a failed delivery is recorded and the run continues.
"""

import logging

from django.conf import settings

from apps.billing.ledger import DjangoLedgerRepository, LedgerRepository
from apps.billing.models import OUTSTANDING_STATUSES
from apps.core.exceptions import SmsDeliveryError
from apps.core.messaging import get_sms_backend
from apps.core.utils import format_money

logger = logging.getLogger(__name__)

REMINDER_TEMPLATE = (
    "Hello {name}, this is a reminder that your {brand} bill for {period} "
    "of {currency} {amount} is due on {due_date}. Thank you."
)


def format_reminder(customer_name, period, amount_due, due_date) -> str:
    return REMINDER_TEMPLATE.format(
        name=customer_name,
        brand=settings.BILLING['REMINDER_BRAND'],
        period=period,
        currency=settings.BILLING['CURRENCY'],
        amount=format_money(amount_due),
        due_date=due_date.strftime('%d/%m/%Y'),
    )


class ReminderService:
    """Dispatches payment reminders through the configured SMS backend."""

    def __init__(self, repository: LedgerRepository = None, backend=None):
        self.repository = repository or DjangoLedgerRepository()
        self.backend = backend or get_sms_backend()

    def send_payment_reminders(self) -> dict:
        """
        Remind every customer with an approved outstanding bill.

        Returns:
            Dict with reminders_sent, failed_count and errors
            (a list of {bill_id, phone, reason}).
        """
        result = {'reminders_sent': 0, 'failed_count': 0, 'errors': []}
        bills = self.repository.list_bills_with_customer(
            statuses=OUTSTANDING_STATUSES, approved=True,
        )

        for bill in bills:
            if bill.customer_name is None:
                continue
            message = format_reminder(
                bill.customer_name, bill.period, bill.amount_due, bill.due_date,
            )
            try:
                delivered = self.backend.send(bill.customer_phone, message)
                reason = None if delivered else 'Backend refused the message.'
            except SmsDeliveryError as exc:
                delivered, reason = False, str(exc)
                logger.warning(
                    "Reminder for bill #%s to %s failed: %s",
                    bill.pk,
                    bill.customer_phone,
                    reason,
                )
            except Exception as exc:
                # Any carrier fault is recorded against this bill only.
                delivered, reason = False, f"{type(exc).__name__}: {exc}"
                logger.exception(
                    "Reminder for bill #%s to %s raised an error",
                    bill.pk,
                    bill.customer_phone,
                )
            else:
                if not delivered:
                    logger.warning(
                        "Reminder for bill #%s to %s failed: %s",
                        bill.pk,
                        bill.customer_phone,
                        reason,
                    )

            if delivered:
                result['reminders_sent'] += 1
                continue

            result['failed_count'] += 1
            result['errors'].append({
                'bill_id': bill.pk,
                'phone': bill.customer_phone,
                'reason': reason,
            })

        logger.info(
            "Payment reminders: %d sent, %d failed",
            result['reminders_sent'],
            result['failed_count'],
        )
        return result
