from django.contrib import admin
from .models import Package


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'student', 'round_number', 'status', 'total_hours', 'remaining_hours',
        'hour_price', 'currency', 'notification_count', 'updated_at',
    ]
    list_filter = ['status', 'currency']
    search_fields = ['student__full_name']
    raw_id_fields = ['student']
    readonly_fields = ['created_at', 'updated_at']
