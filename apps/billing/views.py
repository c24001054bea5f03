"""
Billing views for the AquaTrack billing service.

Views are thin, all business logic is in the service layer.
"""

import logging

import pandas as pd
from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.billing.parsers import parse_readings
from apps.billing.serializers import (
    BillCreateSerializer,
    BillSerializer,
    BillUpdateSerializer,
    BillWithCustomerSerializer,
    BulkUploadResultSerializer,
    BulkUploadSerializer,
    DashboardStatsSerializer,
    InvoiceSerializer,
    MeterMetricSerializer,
    PayBillSerializer,
    SubmitReadingSerializer,
    UsageAnalyticsSerializer,
)
from apps.billing.services import BillLifecycleService, BillService, MeterReadingService
from apps.billing.tasks import send_payment_reminders
from apps.core.exceptions import BillNotFoundError
from apps.core.permissions import IsAdminRole
from apps.customers.services import CustomerService

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = {
    'id': 'Bill ID',
    'customer_name': 'Customer',
    'customer_account_number': 'Account Number',
    'period': 'Period',
    'previous_reading': 'Previous Reading',
    'current_reading': 'Current Reading',
    'consumption': 'Consumption (m³)',
    'rate': 'Rate',
    'amount_due': 'Amount Due',
    'due_date': 'Due Date',
    'status': 'Status',
    'approved': 'Approved',
}


class BillListView(APIView):
    """
    GET  /api/bills
    POST /api/bills

    List every bill with its customer, or create a bill directly.
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        bills = BillService().list_all_bills()
        return Response(BillWithCustomerSerializer(bills, many=True).data)

    def post(self, request):
        serializer = BillCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bill = BillService().create_bill(serializer.validated_data)

        return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)


class BillDetailView(APIView):
    """
    GET    /api/bills/<bill_id>
    PUT    /api/bills/<bill_id>
    DELETE /api/bills/<bill_id>

    PUT writes the given fields as they are, without status rules.
    """

    def get_permissions(self):
        if self.request.method == 'GET':
            return []
        return [IsAdminRole()]

    def get(self, request, bill_id):
        bill = BillService().get_bill(bill_id)
        return Response(BillSerializer(bill).data)

    def put(self, request, bill_id):
        serializer = BillUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bill = BillService().update_bill(bill_id, serializer.validated_data)
        return Response(BillSerializer(bill).data)

    def delete(self, request, bill_id):
        if not BillService().delete_bill(bill_id):
            raise BillNotFoundError(detail=f"Bill with ID {bill_id} not found.")
        return Response(status=status.HTTP_204_NO_CONTENT)


class CustomerBillsView(APIView):
    """
    GET /api/customers/<customer_id>/bills

    A customer's bills, newest due date first.
    """

    def get(self, request, customer_id):
        bills = BillService().list_bills_for_customer(customer_id)
        return Response(BillSerializer(bills, many=True).data)


class CustomerUsageView(APIView):
    """
    GET /api/customers/<customer_id>/usage

    Average and highest consumption over a customer's bills.
    """

    def get(self, request, customer_id):
        usage = BillService().usage_analytics(customer_id)
        return Response(UsageAnalyticsSerializer(usage).data)


class SubmitReadingView(APIView):
    """
    POST /api/customers/<customer_id>/readings

    Submit a meter reading; the resulting bill awaits approval.
    """

    def post(self, request, customer_id):
        serializer = SubmitReadingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        bill = MeterReadingService().submit_reading(
            customer_id,
            serializer.validated_data['new_reading'],
            rate=serializer.validated_data.get('rate'),
        )
        return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)


class BulkReadingUploadView(APIView):
    """
    POST /api/readings/bulk

    Upload an .xlsx, .xls or .csv sheet with accountNumber and newReading
    columns. Every row is processed; failures are listed in the response.
    """

    permission_classes = [IsAdminRole]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        serializer = BulkUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        upload = serializer.validated_data['file']
        records = parse_readings(upload, filename=upload.name)
        result = MeterReadingService().submit_bulk(records)

        return Response(BulkUploadResultSerializer(result).data)


class ApproveBillView(APIView):
    """
    POST /api/bills/<bill_id>/approve
    """

    permission_classes = [IsAdminRole]

    def post(self, request, bill_id):
        bill = BillLifecycleService().approve(bill_id)
        return Response(BillSerializer(bill).data)


class PayBillView(APIView):
    """
    POST /api/bills/<bill_id>/pay

    Simulated mobile money payment. A bill that is not approved, already
    paid or unknown is declined with 200 and ``success: false``.
    """

    def post(self, request, bill_id):
        serializer = PayBillSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        paid = BillLifecycleService().pay(bill_id, serializer.validated_data['phone'])
        return Response({
            'bill_id': bill_id,
            'success': paid,
            'message': 'Payment successful.' if paid else 'Payment declined.',
        })


class MarkBillPaidView(APIView):
    """
    POST /api/bills/<bill_id>/mark-paid

    Administrative settlement, same eligibility as a payment.
    """

    permission_classes = [IsAdminRole]

    def post(self, request, bill_id):
        paid = BillLifecycleService().mark_paid(bill_id)
        return Response({
            'bill_id': bill_id,
            'success': paid,
            'message': 'Bill marked as paid.' if paid else 'Bill cannot be marked as paid.',
        })


class InvoiceView(APIView):
    """
    GET /api/bills/<bill_id>/invoice

    The bill and customer records an invoice document is rendered from.
    """

    def get(self, request, bill_id):
        bill = BillService().get_bill(bill_id)
        customer = CustomerService().get_customer(bill.customer_id)
        return Response(InvoiceSerializer({'bill': bill, 'customer': customer}).data)


class BillExportView(APIView):
    """
    GET /api/bills/export

    All bills as a CSV download.
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        rows = BillWithCustomerSerializer(BillService().list_all_bills(), many=True).data
        df = pd.DataFrame(list(rows), columns=list(EXPORT_COLUMNS))
        df = df.rename(columns=EXPORT_COLUMNS)

        response = HttpResponse(
            df.to_csv(index=False),
            content_type='text/csv; charset=utf-8',
        )
        response['Content-Disposition'] = 'attachment; filename="bills.csv"'
        return response


class PaymentRemindersView(APIView):
    """
    POST /api/reminders

    Queue an SMS reminder run for every approved outstanding bill.
    """

    permission_classes = [IsAdminRole]

    def post(self, request):
        task = send_payment_reminders.delay()
        logger.info("Payment reminders triggered, task=%s", task.id)

        return Response(
            {
                'message': 'Payment reminders have been queued.',
                'task_id': task.id,
            },
            status=status.HTTP_202_ACCEPTED,
        )


class DashboardStatsView(APIView):
    """
    GET /api/dashboard/stats
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response(DashboardStatsSerializer(BillService().dashboard_stats()).data)


class MeterMetricsView(APIView):
    """
    GET /api/metrics/meters

    Total consumption per meter, highest first.
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        return Response(MeterMetricSerializer(BillService().meter_metrics(), many=True).data)
