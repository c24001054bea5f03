"""
Customer serializers for the AquaTrack billing service.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.customers.models import phone_validator


class CustomerWriteSerializer(serializers.Serializer):
    """Serializer for admin customer create and edit requests."""

    name = serializers.CharField(
        max_length=200,
        help_text="Customer's full name.",
    )
    account_number = serializers.CharField(
        max_length=20,
        help_text="Unique account number, e.g. AT-001.",
    )
    meter_number = serializers.CharField(
        max_length=20,
        help_text="Unique meter number, e.g. MT-123.",
    )
    phone = serializers.CharField(
        max_length=16,
        validators=[phone_validator],
        help_text="Phone number, 7 to 15 digits with optional +.",
    )
    last_reading = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal('0'),
        required=False,
        help_text="Current meter reading in m³ (defaults to 0).",
    )
    last_reading_date = serializers.DateField(
        required=False,
        help_text="Date of the current meter reading (defaults to today).",
    )


class CustomerSerializer(serializers.Serializer):
    """Serializer for customer responses."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    account_number = serializers.CharField()
    meter_number = serializers.CharField()
    phone = serializers.CharField()
    last_reading = serializers.DecimalField(max_digits=12, decimal_places=2)
    last_reading_date = serializers.DateField()
