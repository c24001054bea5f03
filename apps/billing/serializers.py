"""
Billing serializers for the AquaTrack billing service.
"""

from decimal import Decimal

from rest_framework import serializers

from apps.billing.models import BillStatus
from apps.customers.serializers import CustomerSerializer


class BillCreateSerializer(serializers.Serializer):
    """Serializer for admin bill creation."""

    customer_id = serializers.IntegerField(min_value=1)
    period = serializers.CharField(max_length=100)
    previous_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'),
    )
    current_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'),
    )
    rate = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False,
        help_text="Price per m³ (defaults to the standard rate).",
    )
    consumption = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False,
        help_text="Override; derived from the readings when omitted.",
    )
    amount_due = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False,
        help_text="Override; consumption * rate when omitted.",
    )
    due_date = serializers.DateField()
    status = serializers.ChoiceField(choices=BillStatus.choices, required=False)
    approved = serializers.BooleanField(required=False, default=False)


class BillUpdateSerializer(serializers.Serializer):
    """Serializer for admin bill edits. Every field is optional."""

    period = serializers.CharField(max_length=100, required=False)
    previous_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False,
    )
    current_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False,
    )
    consumption = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    rate = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False,
    )
    amount_due = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    due_date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=BillStatus.choices, required=False)
    approved = serializers.BooleanField(required=False)


class BillSerializer(serializers.Serializer):
    """Serializer for bill responses."""

    id = serializers.IntegerField()
    customer_id = serializers.IntegerField()
    period = serializers.CharField()
    previous_reading = serializers.DecimalField(max_digits=12, decimal_places=2)
    current_reading = serializers.DecimalField(max_digits=12, decimal_places=2)
    consumption = serializers.DecimalField(max_digits=12, decimal_places=2)
    rate = serializers.DecimalField(max_digits=8, decimal_places=2)
    amount_due = serializers.DecimalField(max_digits=14, decimal_places=2)
    due_date = serializers.DateField()
    status = serializers.CharField()
    approved = serializers.BooleanField()


class BillWithCustomerSerializer(BillSerializer):
    """Bill row in the admin bill list."""

    customer_name = serializers.CharField(allow_null=True)
    customer_account_number = serializers.CharField(allow_null=True)


class SubmitReadingSerializer(serializers.Serializer):
    """Serializer for a single meter reading submission."""

    new_reading = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'),
    )
    rate = serializers.DecimalField(
        max_digits=8, decimal_places=2, min_value=Decimal('0'), required=False,
    )


class BulkUploadSerializer(serializers.Serializer):
    """Serializer for a bulk readings file upload."""

    file = serializers.FileField()


class BulkUploadErrorSerializer(serializers.Serializer):
    account_number = serializers.CharField(allow_blank=True)
    reason = serializers.CharField()


class BulkUploadResultSerializer(serializers.Serializer):
    success_count = serializers.IntegerField()
    error_count = serializers.IntegerField()
    errors = BulkUploadErrorSerializer(many=True)


class PayBillSerializer(serializers.Serializer):
    """Serializer for a mobile money payment request."""

    phone = serializers.RegexField(
        regex=r'^\+?\d{7,15}$',
        max_length=16,
        error_messages={'invalid': 'Enter a valid phone number.'},
    )


class DashboardStatsSerializer(serializers.Serializer):
    total_customers = serializers.IntegerField()
    bills_awaiting_payment = serializers.IntegerField()
    total_overdue_amount = serializers.DecimalField(max_digits=16, decimal_places=2)


class MeterMetricSerializer(serializers.Serializer):
    meter_number = serializers.CharField()
    customer_name = serializers.CharField()
    customer_account_number = serializers.CharField()
    total_consumption = serializers.DecimalField(max_digits=16, decimal_places=2)


class InvoiceSerializer(serializers.Serializer):
    """Bill and customer pair handed to the invoice renderer."""

    bill = BillSerializer()
    customer = CustomerSerializer()


class UsageHistorySerializer(serializers.Serializer):
    period = serializers.CharField()
    due_date = serializers.DateField()
    consumption = serializers.DecimalField(max_digits=12, decimal_places=2)


class UsageAnalyticsSerializer(serializers.Serializer):
    """Per-customer consumption summary."""

    customer_id = serializers.IntegerField()
    bill_count = serializers.IntegerField()
    total_consumption = serializers.DecimalField(max_digits=16, decimal_places=2)
    average_consumption = serializers.DecimalField(max_digits=16, decimal_places=2)
    highest_consumption = serializers.DecimalField(max_digits=12, decimal_places=2)
    highest_consumption_period = serializers.CharField()
    history = UsageHistorySerializer(many=True)
