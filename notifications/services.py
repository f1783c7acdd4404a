"""
Email notifier: payment receipts, registration confirmations, new-lead alerts.

Build one with EmailNotifier.init(credentials) and pass it to the code that
sends mail; nothing here is module-global. Every send_* method returns True/False
and never raises.
"""
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives, get_connection
from django.template.loader import render_to_string

from core.exceptions import EmailDeliveryFailure

logger = logging.getLogger(__name__)

BRAND = 'IgniteLabs'


class EmailCredentials:
    """Connection parameters for one notifier. Defaults come from Django settings."""

    def __init__(self, from_address=None, backend=None, host=None, port=None,
                 username=None, password=None, use_tls=None, timeout=None):
        self.from_address = from_address or settings.DEFAULT_FROM_EMAIL
        self.backend = backend or settings.EMAIL_BACKEND
        self.host = host if host is not None else settings.EMAIL_HOST
        self.port = port if port is not None else settings.EMAIL_PORT
        self.username = username if username is not None else settings.EMAIL_HOST_USER
        self.password = password if password is not None else settings.EMAIL_HOST_PASSWORD
        self.use_tls = use_tls if use_tls is not None else settings.EMAIL_USE_TLS
        self.timeout = timeout if timeout is not None else getattr(settings, 'EMAIL_TIMEOUT', None)

    @classmethod
    def for_organization(cls, organization):
        """Sender address from the tenant's settings; transport from Django settings."""
        from core.org_settings import get_from_address
        return cls(from_address=get_from_address(organization))


class EmailNotifier:

    def __init__(self, connection, from_address):
        self.connection = connection
        self.from_address = from_address

    @classmethod
    def init(cls, credentials=None):
        credentials = credentials or EmailCredentials()
        connection = get_connection(
            backend=credentials.backend,
            fail_silently=False,
            host=credentials.host,
            port=credentials.port,
            username=credentials.username,
            password=credentials.password,
            use_tls=credentials.use_tls,
            timeout=credentials.timeout,
        )
        return cls(connection, credentials.from_address)

    def send_payment_receipt(self, student_email, student_name, amount, date, batch_name, balance):
        return self._send(
            student_email,
            f'Payment Receipt - {BRAND}',
            'payment_receipt',
            {
                'student_name': student_name,
                'amount': amount,
                'payment_date': date,
                'batch_name': batch_name,
                'balance': balance,
            },
        )

    def send_registration_confirmation(self, student_email, student_name, batch_name, start_date):
        return self._send(
            student_email,
            f'Welcome to {BRAND}!',
            'registration',
            {'student_name': student_name, 'batch_name': batch_name, 'start_date': start_date},
        )

    def send_lead_notification(self, admin_email, lead_name, lead_email, lead_phone, source):
        return self._send(
            admin_email,
            f'New Lead Registered - {BRAND}',
            'lead_notification',
            {
                'lead_name': lead_name,
                'lead_email': lead_email or 'Not provided',
                'lead_phone': lead_phone,
                'source': source or 'Website',
            },
        )

    def _send(self, to, subject, template, context):
        if not to:
            logger.info(f"[EMAIL] Skipped '{template}': no recipient")
            return False
        context = dict(context, brand=BRAND)
        try:
            text_body = render_to_string(f'notifications/email/{template}.txt', context)
            html_body = render_to_string(f'notifications/email/{template}.html', context)
            message = EmailMultiAlternatives(
                subject=subject,
                body=text_body,
                from_email=self.from_address,
                to=[to],
                connection=self.connection,
            )
            message.attach_alternative(html_body, 'text/html')
            if message.send() != 1:
                raise EmailDeliveryFailure(f'backend accepted no message for {to}')
        except Exception as exc:
            logger.warning(f"[EMAIL] Failed to send '{template}' to {to}: {exc}", exc_info=True)
            return False
        logger.info(f"[EMAIL] Sent '{template}' to {to}")
        return True
