from django.contrib import admin

from apps.billing.models import Bill


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'customer', 'period', 'previous_reading', 'current_reading',
        'consumption', 'rate', 'amount_due', 'due_date', 'status', 'approved',
    )
    list_filter = ('status', 'approved', 'due_date')
    search_fields = ('customer__name', 'customer__account_number', 'period')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('customer',)
