"""
Decide whether an email is due and hand it to the notification channel.
Called inside the ledger transactions; the send itself happens after commit.
"""
import logging

from django.utils.formats import date_format

from core.models import OrganizationSetting
from core.money import format_currency
from core.org_settings import is_notification_enabled, get_admin_email
from .channel import get_channel
from .services import EmailNotifier, EmailCredentials

logger = logging.getLogger(__name__)

LONG_DATE = 'F j, Y'


def _notifier_for(organization, notifier):
    return notifier or EmailNotifier.init(EmailCredentials.for_organization(organization))


def queue_payment_receipt(payment, student, notifier=None, channel=None):
    """Receipt with the amount paid and the remaining fee_due. Returns True if queued."""
    if not student.email:
        return False
    if not is_notification_enabled(student.organization_id, OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT):
        logger.info(f"[EMAIL] Payment receipts disabled for organization_id={student.organization_id}")
        return False
    notifier = _notifier_for(student.organization, notifier)
    (channel or get_channel()).publish(
        notifier.send_payment_receipt,
        student.email,
        student.name,
        format_currency(payment.amount),
        date_format(payment.payment_date, LONG_DATE),
        student.batch_name or 'your',
        format_currency(student.fee_due),
    )
    return True


def queue_registration_confirmation(student, notifier=None, channel=None):
    if not student.email:
        return False
    if not is_notification_enabled(student.organization_id, OrganizationSetting.KEY_EMAIL_REGISTRATION):
        logger.info(f"[EMAIL] Registration emails disabled for organization_id={student.organization_id}")
        return False
    batch = student.batch
    start = batch.start_date if batch else student.enrollment_date
    notifier = _notifier_for(student.organization, notifier)
    (channel or get_channel()).publish(
        notifier.send_registration_confirmation,
        student.email,
        student.name,
        batch.name if batch else 'our',
        date_format(start, LONG_DATE),
    )
    return True


def queue_lead_notification(lead, notifier=None, channel=None):
    if not is_notification_enabled(lead.organization_id, OrganizationSetting.KEY_EMAIL_NEW_LEAD):
        return False
    admin_email = get_admin_email(lead.organization_id)
    if not admin_email:
        logger.warning(f"[EMAIL] No admin email configured; lead_id={lead.pk} notification skipped")
        return False
    notifier = _notifier_for(lead.organization, notifier)
    (channel or get_channel()).publish(
        notifier.send_lead_notification,
        admin_email,
        lead.name,
        lead.email,
        lead.phone,
        lead.source,
    )
    return True
