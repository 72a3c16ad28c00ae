"""
Billing API views. The payment page lookup is public; everything else is staff only.
"""
import logging
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from billing.serializers import (
    BillSerializer,
    CustomBillCreateSerializer,
    MarkBillPaidSerializer,
    PublicBillSerializer,
    SendBillSerializer,
)
from billing.services.accumulator import create_custom_bill, mark_bill_paid, send_bill
from billing.services.tokens import get_bill_by_token
from core.exceptions import NotificationError

logger = logging.getLogger(__name__)


@api_view(['POST'])
def custom_bill_view(request):
    """POST /api/bills/custom/: manual charge, never merged with class bills"""
    serializer = CustomBillCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    v = serializer.validated_data
    bill = create_custom_bill(
        v['amount'],
        student_id=v.get('studentId'),
        teacher_id=v.get('teacherId'),
        package_id=v.get('packageId'),
        currency=v.get('currency') or None,
        description=v.get('description') or None,
        bill_date=v.get('billDate'),
    )
    return Response(BillSerializer(bill).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
def bill_mark_paid_view(request, pk):
    """POST /api/bills/{id}/mark-paid/: {paymentMethod, paymentDate?}"""
    serializer = MarkBillPaidSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    bill = mark_bill_paid(
        pk,
        serializer.validated_data['paymentMethod'],
        payment_date=serializer.validated_data.get('paymentDate'),
    )
    return Response(BillSerializer(bill).data)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_payment_view(request, token):
    """
    GET /api/payment/{token}/
    Public payment page data. Accepts the full token or the 5-character suffix.
    """
    bill = get_bill_by_token(token)
    return Response(PublicBillSerializer(bill).data)


@api_view(['POST'])
def bill_send_view(request, pk):
    """
    POST /api/bills/{id}/send-whatsapp/: optional {whatsapp}
    Returns {sent, bill}; a failed send is reported with sent=false, not an error status.
    """
    serializer = SendBillSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    try:
        bill = send_bill(pk, serializer.validated_data.get('whatsapp') or None)
    except NotificationError as e:
        logger.warning(f'[bill_send] bill_id={pk} not sent: {e.message}')
        return Response({'sent': False, 'detail': e.message})
    return Response({'sent': True, 'bill': BillSerializer(bill).data})
