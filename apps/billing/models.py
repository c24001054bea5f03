"""
Bill model for the AquaTrack billing service.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class BillStatus(models.TextChoices):
    PENDING_APPROVAL = 'Pending Approval', 'Pending Approval'
    UNPAID = 'Unpaid', 'Unpaid'
    PAID = 'Paid', 'Paid'
    OVERDUE = 'Overdue', 'Overdue'


OUTSTANDING_STATUSES = (BillStatus.UNPAID, BillStatus.OVERDUE)


class Bill(models.Model):
    """
    A charge for the water consumed between two meter readings.

    ``consumption`` and ``amount_due`` are derived from the readings and the
    rate when the bill is created. Administrators may overwrite them.
    """

    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.CASCADE,
        related_name='bills',
        db_index=True,
        help_text="The customer billed."
    )
    period = models.CharField(
        max_length=100,
        help_text="Billing period label, e.g. 'August 2024'."
    )
    previous_reading = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    current_reading = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    consumption = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Water consumed in m³.",
    )
    rate = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Price per m³.",
    )
    amount_due = models.DecimalField(
        max_digits=14,
        decimal_places=2,
    )
    due_date = models.DateField(db_index=True)
    status = models.CharField(
        max_length=20,
        choices=BillStatus.choices,
        default=BillStatus.PENDING_APPROVAL,
        db_index=True,
    )
    approved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bills'
        ordering = ['-due_date']
        indexes = [
            models.Index(
                fields=['customer', 'status'],
                name='idx_bill_customer_status'
            ),
        ]

    def __str__(self):
        return f"Bill #{self.pk} - Customer: {self.customer_id} - {self.period}"

    @property
    def is_outstanding(self):
        """Approved and still awaiting payment."""
        return self.approved and self.status in OUTSTANDING_STATUSES
