"""
Class status API view
"""
from rest_framework.decorators import api_view
from rest_framework.response import Response

from lessons.serializers import ClassRecordSerializer, ClassStatusSerializer
from lessons.services.lifecycle import transition_class_status


@api_view(['POST'])
def class_status_view(request, pk):
    """
    POST /api/classes/{id}/status/: {status, reason?}
    Returns the class after its package deduction and billing were applied.
    """
    serializer = ClassStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    class_record = transition_class_status(
        pk,
        serializer.validated_data['status'],
        reason=serializer.validated_data.get('reason') or None,
        actor_id=request.user.id,
    )
    return Response(ClassRecordSerializer(class_record).data)
