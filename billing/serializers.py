"""
Serializers for billing app
"""
from decimal import Decimal
from rest_framework import serializers
from django.core.validators import MinValueValidator

from .models import Bill
from .services.tokens import payment_url


class _NullableIntegerField(serializers.IntegerField):
    """Accepts empty string as None for optional IDs from frontend."""

    def to_internal_value(self, data):
        if data in (None, '', []) or (isinstance(data, str) and not str(data).strip()):
            return None
        return super().to_internal_value(data)


class BillSerializer(serializers.ModelSerializer):
    packageId = serializers.IntegerField(source='package_id', read_only=True, allow_null=True)
    studentId = serializers.IntegerField(source='student_id', read_only=True, allow_null=True)
    studentName = serializers.CharField(source='student.full_name', read_only=True, allow_null=True)
    teacherId = serializers.IntegerField(source='teacher_id', read_only=True, allow_null=True)
    classIds = serializers.ListField(source='class_ids', child=serializers.IntegerField(), read_only=True)
    totalHours = serializers.DecimalField(source='total_hours', max_digits=8, decimal_places=2, read_only=True)
    isCustom = serializers.BooleanField(source='is_custom', read_only=True)
    invoiceNumber = serializers.CharField(source='invoice_number', read_only=True)
    billDate = serializers.DateField(source='bill_date', read_only=True)
    sentAt = serializers.DateTimeField(source='sent_at', read_only=True)
    paymentDate = serializers.DateField(source='payment_date', read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True, allow_null=True)
    paymentUrl = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            'id', 'invoiceNumber', 'packageId', 'studentId', 'studentName', 'teacherId',
            'classIds', 'totalHours', 'amount', 'currency', 'status', 'isCustom',
            'description', 'billDate', 'sentAt', 'paymentDate', 'paymentMethod', 'paymentUrl',
        ]

    def get_paymentUrl(self, obj):
        return payment_url(obj.payment_token) if obj.payment_token else None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for key in ('amount', 'totalHours'):
            if data.get(key) is not None:
                data[key] = float(data[key])
        return data


class PublicBillSerializer(BillSerializer):
    """Payment page view: no internal ids beyond the bill itself."""

    class Meta(BillSerializer.Meta):
        fields = [
            'id', 'invoiceNumber', 'studentName', 'totalHours', 'amount', 'currency',
            'status', 'description', 'billDate', 'paymentDate',
        ]


class CustomBillCreateSerializer(serializers.Serializer):
    """Custom bill create serializer (frontend format)"""
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    studentId = _NullableIntegerField(required=False, allow_null=True)
    teacherId = _NullableIntegerField(required=False, allow_null=True)
    packageId = _NullableIntegerField(required=False, allow_null=True)
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    billDate = serializers.DateField(required=False, allow_null=True)


class MarkBillPaidSerializer(serializers.Serializer):
    paymentMethod = serializers.CharField(max_length=50)
    paymentDate = serializers.DateField(required=False, allow_null=True)


class SendBillSerializer(serializers.Serializer):
    """Optional number overriding the student's WhatsApp."""
    whatsapp = serializers.CharField(max_length=32, required=False, allow_blank=True, allow_null=True)
