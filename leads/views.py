"""
Lead API views: public capture, staff CRUD, conversion
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from accounts.permissions import IsManager
from core.utils import filter_by_organization, belongs_to_user_organization
from students.serializers import StudentSerializer
from .models import Lead
from .serializers import LeadSerializer, PublicLeadSerializer, LeadConversionSerializer
from .services import capture_lead, update_lead, convert_lead_to_student

logger = logging.getLogger(__name__)


class LeadFormThrottle(AnonRateThrottle):
    rate = '30/hour'


def _leads_queryset(request):
    qs = Lead.objects.select_related('assigned_to')
    return filter_by_organization(qs, request.user)


def _get_lead(request, pk):
    try:
        lead = _leads_queryset(request).get(pk=pk)
    except Lead.DoesNotExist:
        return None
    if not belongs_to_user_organization(lead, request.user):
        return None
    return lead


def _not_found():
    return Response({'detail': 'Lead not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
@throttle_classes([LeadFormThrottle])
def lead_list_view(request):
    """
    GET /api/leads?status=&assignedTo=&source= (manager)
    POST /api/leads (public lead form, or staff entry)
    """
    if request.method == 'POST':
        if request.user and request.user.is_authenticated and IsManager().has_permission(request, None):
            serializer = LeadSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            if data.get('status') == Lead.STATUS_CONVERTED:
                return Response({'detail': 'Use the convert endpoint to convert a lead.', 'code': 'validation_error'},
                                status=status.HTTP_400_BAD_REQUEST)
            lead = capture_lead(
                name=data['name'],
                phone=data['phone'],
                email=data.get('email'),
                source=data.get('source', ''),
                course=data.get('course', ''),
                notes=data.get('notes', ''),
                organization=request.user.organization,
                assigned_to=data.get('assigned_to'),
            )
            if data.get('status') and data['status'] != lead.status:
                lead = update_lead(lead.pk, {'status': data['status']})
        else:
            serializer = PublicLeadSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            lead = capture_lead(**serializer.validated_data)
        return Response(LeadSerializer(lead).data, status=status.HTTP_201_CREATED)

    if not (request.user and request.user.is_authenticated):
        return Response({'detail': 'Authentication credentials were not provided.', 'code': 'not_authenticated'},
                        status=status.HTTP_401_UNAUTHORIZED)
    if not IsManager().has_permission(request, None):
        return Response({'detail': 'You do not have permission to perform this action.',
                         'code': 'permission_denied'}, status=status.HTTP_403_FORBIDDEN)

    qs = _leads_queryset(request)
    for param, field in (('status', 'status'), ('assignedTo', 'assigned_to_id'), ('source', 'source')):
        value = request.query_params.get(param)
        if value:
            qs = qs.filter(**{field: value})
    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(qs, request)
    return paginator.get_paginated_response(LeadSerializer(page, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsManager])
def lead_detail_view(request, pk):
    """
    GET /api/leads/{id}
    PUT/PATCH /api/leads/{id}
    DELETE /api/leads/{id}
    """
    lead = _get_lead(request, pk)
    if lead is None:
        return _not_found()

    if request.method == 'GET':
        return Response(LeadSerializer(lead).data)

    if request.method == 'DELETE':
        lead.delete()
        logger.info(f"[LEAD] Deleted lead_id={pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = LeadSerializer(lead, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    lead = update_lead(lead.pk, serializer.to_changes())
    return Response(LeadSerializer(lead).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def lead_convert_view(request, pk):
    """
    POST /api/leads/{id}/convert
    Body: {batchId, enrollmentDate, totalFee, initialPayment?, paymentMethod?, reference?, paymentNotes?, notes?}
    """
    lead = _get_lead(request, pk)
    if lead is None:
        return _not_found()
    serializer = LeadConversionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    student = convert_lead_to_student(lead.pk, created_by=request.user, **serializer.to_service_kwargs())
    return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)
