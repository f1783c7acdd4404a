"""
Organization settings API
"""
import logging
from decimal import Decimal

from django.utils import timezone
from django.utils.formats import date_format
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsManager
from notifications.dispatch import LONG_DATE
from notifications.services import EmailCredentials, EmailNotifier
from .exceptions import MissingField
from .money import format_currency
from .org_settings import (
    get_default_organization, get_organization_details, get_settings, store_logo, update_settings,
)
from .serializers import (
    EmailNotificationSettingsSerializer, LogoUploadSerializer, OrganizationSettingsSerializer,
    TestEmailSerializer,
)

logger = logging.getLogger(__name__)


def _request_organization(request):
    return request.user.organization or get_default_organization()


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def organization_settings_view(request):
    """
    GET /api/settings/organization
    PUT /api/settings/organization (manager/admin)
    """
    organization = _request_organization(request)
    if request.method == 'GET':
        return Response(OrganizationSettingsSerializer.from_settings(get_settings(organization)))

    if not IsManager().has_permission(request, None):
        return Response({'detail': 'Only managers can change settings', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    serializer = OrganizationSettingsSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    stored = update_settings(organization, serializer.to_settings())
    return Response(OrganizationSettingsSerializer.from_settings(stored))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
@parser_classes([MultiPartParser, FormParser])
def organization_logo_view(request):
    """POST /api/settings/organization/logo (multipart field 'logo'); returns the invoice header details."""
    if not request.FILES.get('logo'):
        raise MissingField('logo', 'No logo file provided')
    serializer = LogoUploadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    organization = _request_organization(request)
    store_logo(organization, serializer.validated_data['logo'])
    return Response(get_organization_details(organization))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsManager])
def email_notification_settings_view(request):
    """
    GET /api/settings/notifications/email
    PUT /api/settings/notifications/email (partial)
    """
    organization = _request_organization(request)
    if request.method == 'GET':
        return Response(EmailNotificationSettingsSerializer.from_settings(get_settings(organization)))

    serializer = EmailNotificationSettingsSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    stored = update_settings(organization, serializer.to_settings())
    return Response(EmailNotificationSettingsSerializer.from_settings(stored))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManager])
def send_test_email_view(request):
    """
    POST /api/settings/notifications/email/test {email, type?}
    Sends one sample message of the given type through the organization's
    sender address, ignoring the notification toggles.
    """
    if not request.data.get('email'):
        raise MissingField('email', 'Email address is required')
    serializer = TestEmailSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']
    kind = serializer.validated_data['type']

    organization = _request_organization(request)
    notifier = EmailNotifier.init(EmailCredentials.for_organization(organization))
    today = date_format(timezone.localdate(), LONG_DATE)
    if kind == 'payment_receipt':
        sent = notifier.send_payment_receipt(
            email, 'Test Student', format_currency(Decimal('1000.00')), today, 'Sample Batch',
            format_currency(Decimal('0.00')),
        )
    elif kind == 'lead':
        sent = notifier.send_lead_notification(email, 'Test Lead', email, '0000000000', 'Test')
    else:
        sent = notifier.send_registration_confirmation(email, 'Test Student', 'Sample Batch', today)
    logger.info(f"[EMAIL] Test '{kind}' email to {email}: sent={sent}")
    return Response({'success': sent, 'type': kind, 'email': email})
