"""
Customer model for the AquaTrack billing service.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

phone_validator = RegexValidator(
    regex=r'^\+?\d{7,15}$',
    message='Phone number must contain 7 to 15 digits, optionally prefixed with +.',
)


class Customer(models.Model):
    """
    A metered water connection and the person billed for it.

    ``last_reading`` is the checkpoint the next bill is derived from; it only
    moves forward when a reading produces a bill.
    """

    name = models.CharField(
        max_length=200,
        help_text="Customer's full name."
    )
    account_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Human-facing account number, e.g. AT-001."
    )
    meter_number = models.CharField(
        max_length=20,
        unique=True,
        help_text="Serial of the installed water meter, e.g. MT-123."
    )
    phone = models.CharField(
        max_length=16,
        validators=[phone_validator],
        help_text="Phone number used for SMS reminders and mobile money."
    )
    last_reading = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        help_text="Meter reading (m³) the most recent bill ended at.",
    )
    last_reading_date = models.DateField(
        default=timezone.localdate,
        help_text="Date the last reading was taken."
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='customer',
        help_text="Customer-role login linked to this record.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        ordering = ['account_number']

    def __str__(self):
        return f"{self.name} ({self.account_number})"
