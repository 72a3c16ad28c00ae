"""
Serializers for notifications app
"""
from rest_framework import serializers

from .models import MessageLog


class MessageLogSerializer(serializers.ModelSerializer):
    messageType = serializers.CharField(source='message_type', read_only=True)
    sentAt = serializers.DateTimeField(source='sent_at', read_only=True)
    packageId = serializers.IntegerField(source='package_id', read_only=True, allow_null=True)

    class Meta:
        model = MessageLog
        fields = ['id', 'packageId', 'recipient', 'messageType', 'status', 'provider', 'sentAt']
