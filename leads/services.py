"""
Lead services: public capture, staff edits, and the lead -> student conversion pipeline.
"""
import logging

from dateutil.relativedelta import relativedelta
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from batches.models import Batch
from core.exceptions import (
    DuplicateStudent, LeadAlreadyConverted, MissingField, NotFound, PersistenceError,
)
from core.money import to_decimal
from core.org_settings import get_default_organization
from notifications.dispatch import queue_lead_notification, queue_registration_confirmation
from payments.services import create_payment_row
from students import ledger
from students.models import Student
from students.services import is_duplicate_phone
from .models import Lead

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_NOTE = 'Initial payment during enrollment'
LEAD_FIELDS = ('name', 'phone', 'email', 'source', 'course', 'status', 'notes', 'assigned_to')


def capture_lead(name, phone, email=None, source='', course='', notes='', organization=None,
                 assigned_to=None, notifier=None, channel=None):
    """Create a lead (public form or staff). Admin gets a new-lead email after commit."""
    organization = organization or get_default_organization()
    with transaction.atomic():
        lead = Lead.objects.create(
            organization=organization,
            name=name,
            phone=phone,
            email=email or None,
            source=source or '',
            course=course or '',
            notes=notes or '',
            assigned_to=assigned_to,
        )
        logger.info(f"[LEAD] Captured lead_id={lead.pk} source={lead.source!r} organization_id={organization.pk}")
        queue_lead_notification(lead, notifier=notifier, channel=channel)
    return lead


def update_lead(lead_id, changes):
    """Staff edit. Status can move freely except into or out of 'converted'."""
    with transaction.atomic():
        try:
            lead = Lead.objects.select_for_update().get(pk=lead_id)
        except Lead.DoesNotExist:
            raise NotFound(f'Lead {lead_id} not found')
        new_status = changes.get('status')
        if new_status == Lead.STATUS_CONVERTED and not lead.is_converted:
            raise ValidationError({'status': 'Use the convert endpoint to convert a lead.'})
        if lead.is_converted and new_status and new_status != Lead.STATUS_CONVERTED:
            raise LeadAlreadyConverted('A converted lead cannot change status.')
        for field in LEAD_FIELDS:
            if field in changes:
                setattr(lead, field, changes[field])
        lead.save()
    return lead


def convert_lead_to_student(lead_id, batch_id=None, enrollment_date=None, total_fee=None,
                            initial_payment=None, payment_method=None, reference=None,
                            payment_notes=None, notes=None, created_by=None,
                            notifier=None, channel=None):
    """
    Turn a lead into a student in one transaction:
    create the Student (with converted_from_lead set and the opening ledger),
    insert the initial Payment when initial_payment > 0, flip the lead to 'converted'.
    Either all three happen or none do. Registration email goes out after commit.

    Raises NotFound, MissingField, InvalidAmount, LeadAlreadyConverted,
    DuplicateStudent or PersistenceError.
    """
    if not batch_id:
        raise MissingField('batchId')
    if not enrollment_date:
        raise MissingField('enrollmentDate')
    if total_fee in (None, ''):
        raise MissingField('totalFee')
    has_initial_payment = initial_payment not in (None, '') and to_decimal(
        initial_payment, field='initial_payment') > 0
    if has_initial_payment and not payment_method:
        raise MissingField('paymentMethod', 'paymentMethod is required when an initial payment is given')

    opening = ledger.initialize(total_fee, initial_payment if has_initial_payment else 0)
    total = to_decimal(total_fee, field='total_fee')

    try:
        with transaction.atomic():
            try:
                lead = Lead.objects.select_for_update().get(pk=lead_id)
            except Lead.DoesNotExist:
                raise NotFound(f'Lead {lead_id} not found')
            if lead.is_converted:
                raise LeadAlreadyConverted()
            try:
                batch = Batch.objects.get(pk=batch_id)
            except (Batch.DoesNotExist, ValueError, TypeError):
                raise NotFound(f'Batch {batch_id} not found')
            if Student.objects.filter(phone=lead.phone).exists():
                raise DuplicateStudent()

            student = Student.objects.create(
                organization_id=lead.organization_id,
                batch=batch,
                converted_from_lead=lead,
                name=lead.name,
                phone=lead.phone,
                email=lead.email or None,
                enrollment_date=enrollment_date,
                total_fee=total,
                fee_paid=opening.fee_paid,
                fee_due=opening.fee_due,
                notes=notes or None,
            )

            payment = None
            if has_initial_payment:
                today = timezone.localdate()
                payment = create_payment_row(
                    student,
                    opening.fee_paid,
                    payment_date=today,
                    payment_method=payment_method,
                    reference=reference,
                    notes=payment_notes or DEFAULT_PAYMENT_NOTE,
                    next_payment_due_date=today + relativedelta(months=1),
                    created_by=created_by,
                )

            lead.status = Lead.STATUS_CONVERTED
            lead.converted_at = timezone.now()
            lead.save(update_fields=['status', 'converted_at', 'updated_at'])

            logger.info(
                f"[CONVERT] lead_id={lead.pk} -> student_id={student.pk}: total_fee={total}, "
                f"fee_paid={student.fee_paid}, fee_due={student.fee_due}, "
                f"payment_id={payment.pk if payment else None}"
            )
            queue_registration_confirmation(student, notifier=notifier, channel=channel)
    except IntegrityError as exc:
        if is_duplicate_phone(exc):
            raise DuplicateStudent() from exc
        logger.error(f"[CONVERT] Constraint violation for lead_id={lead_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    except DatabaseError as exc:
        logger.error(f"[CONVERT] Transaction failed for lead_id={lead_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return student
