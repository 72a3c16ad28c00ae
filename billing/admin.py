from django.contrib import admin
from .models import Bill


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ['id', 'student', 'package', 'total_hours', 'amount', 'currency', 'status', 'is_custom', 'bill_date']
    list_filter = ['status', 'is_custom', 'currency']
    search_fields = ['student__full_name', 'payment_token']
    raw_id_fields = ['student', 'teacher', 'package']
    readonly_fields = ['payment_token', 'created_at', 'updated_at']
