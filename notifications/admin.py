from django.contrib import admin
from .models import MessageLog


@admin.register(MessageLog)
class MessageLogAdmin(admin.ModelAdmin):
    list_display = ['id', 'recipient', 'message_type', 'status', 'provider', 'package', 'sent_at', 'created_at']
    list_filter = ['message_type', 'status', 'provider']
    search_fields = ['recipient']
    raw_id_fields = ['package']
    readonly_fields = ['created_at']
