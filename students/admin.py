"""
Admin configuration for students app
"""
from django.contrib import admin
from .models import Student, Teacher


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'whatsapp', 'currency', 'language', 'status', 'created_at']
    list_filter = ['status', 'language']
    search_fields = ['full_name', 'email', 'whatsapp']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'hourly_rate', 'currency']
    search_fields = ['full_name']
