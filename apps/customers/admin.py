from django.contrib import admin

from apps.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'name', 'account_number', 'meter_number',
        'phone', 'last_reading', 'last_reading_date', 'created_at',
    )
    list_filter = ('last_reading_date',)
    search_fields = ('name', 'account_number', 'meter_number', 'phone')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('user',)
