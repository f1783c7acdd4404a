"""
Batch API views
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django.db.models.deletion import ProtectedError

from accounts.permissions import IsManager, IsStaffMember
from core.utils import filter_by_organization, belongs_to_user_organization
from .models import Batch
from .serializers import BatchSerializer

logger = logging.getLogger(__name__)


def _batches_queryset(request):
    qs = Batch.objects.select_related('trainer')
    if request.user.role == 'trainer':
        qs = qs.filter(trainer=request.user)
    return filter_by_organization(qs, request.user)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsStaffMember])
def batch_list_view(request):
    """
    GET /api/batches
    POST /api/batches (manager)
    """
    if request.method == 'GET':
        return Response(BatchSerializer(_batches_queryset(request), many=True).data)

    if not IsManager().has_permission(request, None):
        return Response({'detail': 'Only managers can create batches', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    serializer = BatchSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    batch = serializer.save(organization=request.user.organization)
    logger.info(f"[BATCH] Created batch_id={batch.pk} name={batch.name!r} fee={batch.fee}")
    return Response(BatchSerializer(batch).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffMember])
def active_batches_view(request):
    """
    GET /api/batches/active
    """
    qs = _batches_queryset(request).filter(is_active=True)
    return Response(BatchSerializer(qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsStaffMember])
def batch_detail_view(request, pk):
    """
    GET /api/batches/{id}
    PUT/PATCH /api/batches/{id} (manager)
    DELETE /api/batches/{id} (manager)
    """
    try:
        batch = _batches_queryset(request).get(pk=pk)
    except Batch.DoesNotExist:
        return Response({'detail': 'Batch not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    if not belongs_to_user_organization(batch, request.user):
        return Response({'detail': 'Batch not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(BatchSerializer(batch).data)

    if not IsManager().has_permission(request, None):
        return Response({'detail': 'Only managers can change batches', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        try:
            batch.delete()
        except ProtectedError:
            return Response(
                {'detail': 'Batch has enrolled students and cannot be deleted', 'code': 'batch_in_use'},
                status=status.HTTP_409_CONFLICT,
            )
        logger.info(f"[BATCH] Deleted batch_id={pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = BatchSerializer(batch, data=request.data, partial=request.method == 'PATCH')
    serializer.is_valid(raise_exception=True)
    batch = serializer.save()
    return Response(BatchSerializer(batch).data)
