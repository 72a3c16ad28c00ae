"""
Serializers for packages app
"""
from decimal import Decimal
from rest_framework import serializers
from django.core.validators import MinValueValidator

from lessons.serializers import ClassRecordSerializer
from .models import Package

DECIMAL_FIELDS = ('totalHours', 'remainingHours', 'hourPrice')


class PackageSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.full_name', read_only=True)
    roundNumber = serializers.IntegerField(source='round_number', read_only=True)
    startDate = serializers.DateField(source='start_date', read_only=True)
    totalHours = serializers.DecimalField(source='total_hours', max_digits=8, decimal_places=2, read_only=True)
    remainingHours = serializers.DecimalField(source='remaining_hours', max_digits=8, decimal_places=2, read_only=True)
    totalClasses = serializers.IntegerField(source='total_classes', read_only=True)
    remainingClasses = serializers.IntegerField(source='remaining_classes', read_only=True)
    hourPrice = serializers.DecimalField(source='hour_price', max_digits=10, decimal_places=2, read_only=True)
    lastNotificationSent = serializers.DateTimeField(source='last_notification_sent', read_only=True)
    notificationCount = serializers.IntegerField(source='notification_count', read_only=True)
    completionDate = serializers.SerializerMethodField()

    class Meta:
        model = Package
        fields = [
            'id', 'studentId', 'studentName', 'roundNumber', 'startDate',
            'totalHours', 'remainingHours', 'totalClasses', 'remainingClasses',
            'hourPrice', 'currency', 'status', 'lastNotificationSent',
            'notificationCount', 'completionDate',
        ]

    def get_completionDate(self, obj):
        if obj.status == Package.STATUS_ACTIVE or not obj.updated_at:
            return None
        return obj.updated_at.date().isoformat()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for key in DECIMAL_FIELDS:
            if data.get(key) is not None:
                data[key] = float(data[key])
        return data


class PackageCreateSerializer(serializers.Serializer):
    """New round (frontend format)"""
    totalHours = serializers.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    hourPrice = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, allow_null=True)


class PackageReactivateSerializer(serializers.Serializer):
    """Optional overrides; missing values keep the round's current terms."""
    totalHours = serializers.DecimalField(
        max_digits=8,
        decimal_places=2,
        required=False,
        allow_null=True,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    hourPrice = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        required=False,
        allow_null=True,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    startDate = serializers.DateField(required=False, allow_null=True)

    def to_overrides(self):
        v = self.validated_data
        return {
            'total_hours': v.get('totalHours'),
            'hour_price': v.get('hourPrice'),
            'currency': v.get('currency') or None,
            'start_date': v.get('startDate'),
        }


class DeductSerializer(serializers.Serializer):
    durationHours = serializers.DecimalField(
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    notify = serializers.BooleanField(required=False, default=True)


class BulkNotifySerializer(serializers.Serializer):
    packageIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


def serialize_bills_summary(summary):
    return {
        'totalAmount': float(summary['total_amount']),
        'unpaidAmount': float(summary['unpaid_amount']),
        'billCount': summary['bill_count'],
        'currency': summary['currency'],
        'totalHours': float(summary['total_hours']),
        'hourPrice': float(summary['hour_price']),
    }


def serialize_round_sections(sections):
    """Round view: one block per section with its package and annotated classes."""
    result = []
    for section in sections:
        result.append({
            'section': section['section'],
            'package': PackageSerializer(section['package']).data if section['package'] else None,
            'totalClasses': section['total_classes'],
            'totalHoursUsed': float(section['total_hours_used']),
            'classes': [
                {
                    **ClassRecordSerializer(entry['class']).data,
                    'durationHours': float(entry['duration_hours']),
                    'cumulativeHours': float(entry['cumulative_hours']),
                    'counter': float(entry['counter']),
                    'countsTowardsLimit': entry['counts_towards_limit'],
                }
                for entry in section['classes']
            ],
        })
    return result
