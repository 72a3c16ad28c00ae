from django.contrib import admin
from .models import ClassRecord


@admin.register(ClassRecord)
class ClassRecordAdmin(admin.ModelAdmin):
    list_display = ['id', 'student', 'teacher', 'package', 'class_date', 'start_time', 'duration', 'status']
    list_filter = ['status', 'class_date']
    search_fields = ['student__full_name', 'teacher__full_name']
    raw_id_fields = ['student', 'teacher', 'package', 'cancelled_by']
    date_hierarchy = 'class_date'
    readonly_fields = ['created_at', 'updated_at']
