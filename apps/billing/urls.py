"""
Billing URL configuration.
"""

from django.urls import path

from apps.billing.views import (
    ApproveBillView,
    BillDetailView,
    BillExportView,
    BillListView,
    BulkReadingUploadView,
    CustomerBillsView,
    CustomerUsageView,
    DashboardStatsView,
    InvoiceView,
    MarkBillPaidView,
    MeterMetricsView,
    PaymentRemindersView,
    PayBillView,
    SubmitReadingView,
)

urlpatterns = [
    path('bills', BillListView.as_view(), name='bill-list'),
    path('bills/export', BillExportView.as_view(), name='bill-export'),
    path('bills/<int:bill_id>', BillDetailView.as_view(), name='bill-detail'),
    path('bills/<int:bill_id>/approve', ApproveBillView.as_view(), name='bill-approve'),
    path('bills/<int:bill_id>/pay', PayBillView.as_view(), name='bill-pay'),
    path('bills/<int:bill_id>/mark-paid', MarkBillPaidView.as_view(), name='bill-mark-paid'),
    path('bills/<int:bill_id>/invoice', InvoiceView.as_view(), name='bill-invoice'),
    path('customers/<int:customer_id>/bills', CustomerBillsView.as_view(), name='customer-bills'),
    path('customers/<int:customer_id>/readings', SubmitReadingView.as_view(), name='customer-readings'),
    path('customers/<int:customer_id>/usage', CustomerUsageView.as_view(), name='customer-usage'),
    path('readings/bulk', BulkReadingUploadView.as_view(), name='readings-bulk'),
    path('reminders', PaymentRemindersView.as_view(), name='payment-reminders'),
    path('dashboard/stats', DashboardStatsView.as_view(), name='dashboard-stats'),
    path('metrics/meters', MeterMetricsView.as_view(), name='meter-metrics'),
]
