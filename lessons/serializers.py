"""
Serializers for lessons app
"""
from rest_framework import serializers

from .models import ClassRecord


class ClassRecordSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    teacherId = serializers.IntegerField(source='teacher_id', read_only=True)
    packageId = serializers.IntegerField(source='package_id', read_only=True, allow_null=True)
    date = serializers.DateField(source='class_date', read_only=True)
    startTime = serializers.TimeField(source='start_time', read_only=True)
    endTime = serializers.TimeField(source='end_time', read_only=True)
    cancelledBy = serializers.IntegerField(source='cancelled_by_id', read_only=True, allow_null=True)
    cancellationReason = serializers.CharField(source='cancellation_reason', read_only=True, allow_null=True)
    cancelledAt = serializers.DateTimeField(source='cancelled_at', read_only=True)

    class Meta:
        model = ClassRecord
        fields = [
            'id', 'studentId', 'teacherId', 'packageId', 'date', 'startTime', 'endTime',
            'duration', 'status', 'cancelledBy', 'cancellationReason', 'cancelledAt',
        ]


class ClassStatusSerializer(serializers.Serializer):
    """Status change request. Unknown statuses are rejected by the lifecycle service."""
    status = serializers.CharField(max_length=30)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
