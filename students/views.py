"""
Student API views: enrollment, listing, administrative edit, ledger audit
"""
import logging

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsManager
from core.org_settings import get_default_organization
from core.utils import filter_by_organization, belongs_to_user_organization, parse_bool
from . import ledger
from .models import Student
from .serializers import (
    StudentSerializer, StudentCreateSerializer, StudentUpdateSerializer, LedgerSerializer,
)
from .services import enroll_student, update_student, delete_student

logger = logging.getLogger(__name__)


def _students_queryset(request):
    qs = Student.objects.select_related('batch')
    return filter_by_organization(qs, request.user)


def _not_found():
    return Response({'detail': 'Student not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def student_list_view(request):
    """
    GET /api/students?batchId=&isActive=&search=
    POST /api/students (direct enrollment, optional initial payment)
    """
    if request.method == 'GET':
        qs = _students_queryset(request)
        batch_id = request.query_params.get('batchId')
        if batch_id:
            qs = qs.filter(batch_id=batch_id)
        is_active = parse_bool(request.query_params.get('isActive'))
        if is_active is not None:
            qs = qs.filter(is_active=is_active)
        search = (request.query_params.get('search') or '').strip()
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(phone__icontains=search))
        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(qs, request)
        return paginator.get_paginated_response(StudentSerializer(page, many=True).data)

    serializer = StudentCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    organization = request.user.organization or get_default_organization()
    student = enroll_student(organization, created_by=request.user, **serializer.to_service_kwargs())
    return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsManager])
def student_detail_view(request, pk):
    """
    GET /api/students/{id}
    PUT/PATCH /api/students/{id}
    DELETE /api/students/{id} (payments are deleted with the student)
    """
    try:
        student = _students_queryset(request).get(pk=pk)
    except Student.DoesNotExist:
        return _not_found()
    if not belongs_to_user_organization(student, request.user):
        return _not_found()

    if request.method == 'GET':
        return Response(StudentSerializer(student).data)

    if request.method == 'DELETE':
        delete_student(student.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = StudentUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    student = update_student(student.pk, serializer.to_changes())
    return Response(StudentSerializer(student).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def student_ledger_view(request, pk):
    """
    GET /api/students/{id}/ledger
    """
    try:
        student = _students_queryset(request).get(pk=pk)
    except Student.DoesNotExist:
        return _not_found()
    data = dict(ledger.audit(student), studentId=student.pk)
    return Response(LedgerSerializer(data).data)
