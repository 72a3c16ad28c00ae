"""
Package API views (staff only; default permissions from REST_FRAMEWORK settings).
Engine errors are turned into responses by config.exceptions.custom_exception_handler.
"""
import logging
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from billing.services.accumulator import get_bills_summary, mark_package_paid, notify_package_bills, notify_packages
from core.exceptions import NotFoundError, NotificationError
from notifications.serializers import MessageLogSerializer
from notifications.services import package_message_history
from packages.models import Package
from packages.serializers import (
    BulkNotifySerializer,
    DeductSerializer,
    PackageCreateSerializer,
    PackageReactivateSerializer,
    PackageSerializer,
    serialize_bills_summary,
    serialize_round_sections,
)
from packages.services.allocator import (
    activate_new_round,
    deduct_class,
    finished_count,
    finished_packages,
    reactivate_package,
)
from packages.services.rounds import get_student_packages_with_classes_by_rounds
from students.services import get_student

logger = logging.getLogger(__name__)


def _get_package_or_404(pk):
    try:
        return Package.objects.select_related('student').get(pk=pk)
    except Package.DoesNotExist:
        raise NotFoundError(f'Package {pk} not found', package_id=pk)


@api_view(['GET', 'POST'])
def student_packages_view(request, student_id):
    """
    GET /api/students/{id}/packages/: all rounds of the student
    POST /api/students/{id}/packages/: start a new round (finishes the active one)
    """
    if request.method == 'GET':
        student = get_student(student_id)
        packages = Package.objects.filter(student=student).select_related('student').order_by('round_number')
        return Response(PackageSerializer(packages, many=True).data)

    serializer = PackageCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    v = serializer.validated_data
    package = activate_new_round(
        student_id,
        v['totalHours'],
        v['hourPrice'],
        v.get('currency') or None,
        v.get('startDate'),
        actor_id=request.user.id,
    )
    return Response(PackageSerializer(package).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def student_package_rounds_view(request, student_id):
    """
    GET /api/students/{id}/packages/rounds/
    Redistributes classes across rounds (saved) and returns the round view.
    """
    sections = get_student_packages_with_classes_by_rounds(student_id)
    return Response({'studentId': student_id, 'sections': serialize_round_sections(sections)})


@api_view(['GET'])
def finished_packages_view(request):
    """
    GET /api/packages/finished/?studentId=
    Rounds waiting for payment with their bills summary, plus the badge count.
    """
    student_id = request.query_params.get('studentId') or None
    data = []
    for package in finished_packages(student_id):
        item = PackageSerializer(package).data
        item['billsSummary'] = serialize_bills_summary(get_bills_summary(package.id))
        data.append(item)
    return Response({'packages': data, 'unnotifiedCount': finished_count()})


@api_view(['POST'])
def package_deduct_view(request, pk):
    """POST /api/packages/{id}/deduct/: {durationHours, notify?}"""
    serializer = DeductSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    applied = deduct_class(
        pk,
        serializer.validated_data['durationHours'],
        notify=serializer.validated_data['notify'],
    )
    package = _get_package_or_404(pk)
    return Response({'applied': applied, 'package': PackageSerializer(package).data})


@api_view(['POST'])
def package_reactivate_view(request, pk):
    """POST /api/packages/{id}/reactivate/: optional {totalHours, hourPrice, currency, startDate}"""
    serializer = PackageReactivateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    package = reactivate_package(pk, serializer.to_overrides(), actor_id=request.user.id)
    return Response(PackageSerializer(package).data)


@api_view(['GET'])
def package_bills_summary_view(request, pk):
    """GET /api/packages/{id}/bills-summary/"""
    return Response(serialize_bills_summary(get_bills_summary(pk)))


@api_view(['POST'])
def package_notify_view(request, pk):
    """
    POST /api/packages/{id}/notify/
    Manual payment request. Returns {sent: bool}; a failed send is not an error response.
    """
    package = _get_package_or_404(pk)
    try:
        sent = notify_package_bills(package)
    except NotificationError as e:
        logger.warning(f'[package_notify] package_id={pk} not sent: {e.message}')
        return Response({'sent': False, 'detail': e.message})
    return Response({'sent': sent})


@api_view(['POST'])
def package_mark_paid_view(request, pk):
    """POST /api/packages/{id}/mark-paid/: settles every bill and freezes the round."""
    package = mark_package_paid(pk)
    return Response(PackageSerializer(package).data)


@api_view(['POST'])
def packages_bulk_notify_view(request):
    """
    POST /api/packages/bulk-notify/: {packageIds: [..]}
    Sends each round's payment request; failures are counted, not raised.
    """
    serializer = BulkNotifySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = notify_packages(serializer.validated_data['packageIds'])
    return Response({
        'successCount': result['success_count'],
        'failedCount': result['failed_count'],
        'errors': result['errors'],
    })


@api_view(['GET'])
def package_notification_history_view(request, pk):
    """GET /api/packages/{id}/notification-history/: delivered messages, newest first"""
    logs = package_message_history(pk)
    return Response(MessageLogSerializer(logs, many=True).data)
