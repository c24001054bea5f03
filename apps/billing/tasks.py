"""
Celery tasks for the billing service.

Scheduled meter reading imports, payment reminders and overdue promotion.
"""

import logging
from pathlib import Path

from celery import shared_task
from django.conf import settings

from apps.billing.notifications import ReminderService
from apps.billing.parsers import parse_readings
from apps.billing.services import BillLifecycleService, MeterReadingService
from apps.core.exceptions import ReadingsFileError

logger = logging.getLogger(__name__)

READINGS_FILENAME = 'meter_readings.xlsx'


@shared_task(
    bind=True,
    name='billing.ingest_meter_readings',
    max_retries=3,
    default_retry_delay=10,
)
def ingest_meter_readings(self, filename=READINGS_FILENAME):
    """
    Bill the readings in DATA_DIR/<filename>.

    Rows are processed independently, so re-running after a partial
    failure only re-rejects the rows already billed (their reading no
    longer advances).
    """
    file_path = Path(settings.DATA_DIR) / filename

    if not file_path.exists():
        logger.error("Meter readings file not found: %s", file_path)
        return {'status': 'error', 'message': f'File not found: {file_path}'}

    try:
        records = parse_readings(file_path)
    except ReadingsFileError as exc:
        logger.error("Meter readings file rejected: %s", exc.detail)
        return {'status': 'error', 'message': str(exc.detail)}

    try:
        logger.info("Starting meter reading ingestion from %s", file_path)
        result = MeterReadingService().submit_bulk(records)
    except Exception as exc:
        logger.exception("Meter reading ingestion failed")
        raise self.retry(exc=exc)

    result = {'status': 'success', 'total_rows': len(records), **result}
    logger.info("Meter reading ingestion complete: %s", result)
    return result


@shared_task(
    bind=True,
    name='billing.send_payment_reminders',
    max_retries=3,
    default_retry_delay=30,
)
def send_payment_reminders(self):
    """SMS every customer with an approved, unpaid or overdue bill."""
    try:
        return ReminderService().send_payment_reminders()
    except Exception as exc:
        logger.exception("Payment reminder run failed")
        raise self.retry(exc=exc)


@shared_task(name='billing.mark_overdue_bills')
def mark_overdue_bills():
    """Promote approved Unpaid bills past their due date to Overdue."""
    promoted = BillLifecycleService().mark_overdue()
    return {'status': 'success', 'promoted': promoted}
