"""
Payment and invoice API views
"""
import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsManager
from core.exceptions import NotFound
from core.org_settings import get_organization_details
from core.utils import filter_by_organization, belongs_to_user_organization
from students.models import Student
from .invoices import render_invoice, render_consolidated_invoice
from .models import Payment
from .serializers import PaymentSerializer, PaymentCreateSerializer, PaymentUpdateSerializer
from .services import record_payment, update_payment

logger = logging.getLogger(__name__)


def _payments_queryset(request):
    qs = Payment.objects.select_related('student')
    return filter_by_organization(qs, request.user)


def _get_student(request, student_id):
    try:
        student = Student.objects.select_related('batch', 'organization').get(pk=student_id)
    except (Student.DoesNotExist, ValueError, TypeError):
        raise NotFound('Student not found')
    if not belongs_to_user_organization(student, request.user):
        raise NotFound('Student not found')
    return student


def _record_response(student_id, request):
    serializer = PaymentCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payment = record_payment(student_id, created_by=request.user, **serializer.to_service_kwargs())
    code = status.HTTP_200_OK if getattr(payment, 'replayed', False) else status.HTTP_201_CREATED
    return Response(PaymentSerializer(payment).data, status=code)


def _pdf_response(pdf, filename):
    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response['Content-Length'] = str(len(pdf))
    return response


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def payment_list_view(request):
    """
    GET /api/payments?studentId=&method=
    POST /api/payments (record a payment)
    """
    if request.method == 'GET':
        qs = _payments_queryset(request)
        student_id = request.query_params.get('studentId')
        if student_id:
            qs = qs.filter(student_id=student_id)
        method = request.query_params.get('method')
        if method:
            qs = qs.filter(payment_method=method)
        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(qs, request)
        return paginator.get_paginated_response(PaymentSerializer(page, many=True).data)

    student_id = request.data.get('studentId')
    if student_id in (None, ''):
        return Response({'detail': 'studentId is required', 'code': 'missing_field'},
                        status=status.HTTP_400_BAD_REQUEST)
    _get_student(request, student_id)
    return _record_response(student_id, request)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated, IsManager])
def payment_detail_view(request, pk):
    """
    GET /api/payments/{id}
    PUT/PATCH /api/payments/{id} (edit a payment; partial either way)
    """
    try:
        payment = _payments_queryset(request).get(pk=pk)
    except Payment.DoesNotExist:
        return Response({'detail': 'Payment not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(PaymentSerializer(payment).data)

    serializer = PaymentUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payment = update_payment(payment.pk, serializer.to_changes())
    return Response(PaymentSerializer(payment).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsManager])
def student_payments_view(request, student_id):
    """
    GET /api/students/{id}/payments
    POST /api/students/{id}/payments
    """
    student = _get_student(request, student_id)
    if request.method == 'GET':
        payments = student.payments.order_by('payment_date', 'id')
        return Response(PaymentSerializer(payments, many=True).data)
    return _record_response(student.pk, request)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def invoice_view(request, payment_id):
    """
    GET /api/invoices/{paymentId}: PDF attachment invoice-{id}.pdf
    """
    try:
        payment = Payment.objects.get(pk=payment_id)
    except Payment.DoesNotExist:
        return Response({'detail': 'Payment not found', 'code': 'not_found'}, status=status.HTTP_404_NOT_FOUND)
    student = _get_student(request, payment.student_id)
    organization = get_organization_details(student.organization_id)
    pdf = render_invoice(payment, student, organization)
    return _pdf_response(pdf, f'invoice-{payment.pk}.pdf')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManager])
def consolidated_invoice_view(request, student_id):
    """
    GET /api/students/{id}/invoices/consolidated: PDF attachment consolidated-invoice-{id}.pdf
    """
    student = _get_student(request, student_id)
    payments = list(student.payments.order_by('payment_date', 'id'))
    if not payments:
        return Response({'detail': 'No payments found for this student', 'code': 'not_found'},
                        status=status.HTTP_404_NOT_FOUND)
    organization = get_organization_details(student.organization_id)
    pdf = render_consolidated_invoice(payments, student, organization)
    return _pdf_response(pdf, f'consolidated-invoice-{student.pk}.pdf')
