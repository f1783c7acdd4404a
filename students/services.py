"""
Student services: direct enrollment, administrative edits, deletion.
Every ledger write happens under the Student row lock.
"""
import logging

from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from core.exceptions import DuplicateStudent, NotFound, PersistenceError
from core.money import to_decimal
from notifications.dispatch import queue_registration_confirmation
from . import ledger
from .models import Student

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('name', 'phone', 'email', 'parent_mobile', 'enrollment_date', 'batch', 'is_active', 'notes')


def is_duplicate_phone(exc):
    """True when an IntegrityError comes from the unique students.phone constraint."""
    # PostgreSQL: 'Key (phone)=(...) already exists'; SQLite: 'UNIQUE constraint failed: students.phone'
    return 'phone' in str(exc).lower()


def enroll_student(organization, name, phone, enrollment_date, total_fee, batch=None, email=None,
                   parent_mobile=None, notes=None, initial_payment=None, payment_method=None,
                   payment_reference=None, created_by=None, notifier=None, channel=None):
    """
    Create a student with an opening ledger and, when initial_payment > 0,
    the matching Payment row, in one transaction.
    """
    from payments.services import create_payment_row

    opening = ledger.initialize(total_fee, initial_payment or 0)
    if opening.fee_paid > 0 and not payment_method:
        raise ValidationError({'paymentMethod': 'Payment method is required with an initial payment.'})
    if Student.objects.filter(phone=phone).exists():
        raise DuplicateStudent()

    try:
        with transaction.atomic():
            student = Student.objects.create(
                organization=organization,
                batch=batch,
                name=name,
                phone=phone,
                email=email or None,
                parent_mobile=parent_mobile or None,
                enrollment_date=enrollment_date,
                total_fee=to_decimal(total_fee, field='total_fee'),
                fee_paid=opening.fee_paid,
                fee_due=opening.fee_due,
                notes=notes or None,
            )
            if opening.fee_paid > 0:
                create_payment_row(
                    student,
                    opening.fee_paid,
                    payment_date=enrollment_date,
                    payment_method=payment_method,
                    reference=payment_reference,
                    notes='Initial payment during enrollment',
                    created_by=created_by,
                )
            logger.info(
                f"[ENROLL] student_id={student.pk}: total_fee={student.total_fee}, "
                f"fee_paid={student.fee_paid}, fee_due={student.fee_due}"
            )
            queue_registration_confirmation(student, notifier=notifier, channel=channel)
    except IntegrityError as exc:
        if is_duplicate_phone(exc):
            raise DuplicateStudent() from exc
        logger.error(f"[ENROLL] Constraint violation for phone={phone}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    except DatabaseError as exc:
        logger.error(f"[ENROLL] Transaction failed for phone={phone}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return student


def update_student(student_id, changes):
    """
    Administrative edit. fee_paid/fee_due cannot be set directly; a new
    total_fee recomputes fee_due = total_fee - fee_paid.
    """
    forbidden = {'fee_paid', 'fee_due'} & set(changes)
    if forbidden:
        raise ValidationError({field: 'Derived from payments; cannot be set.' for field in sorted(forbidden)})
    new_total = to_decimal(changes['total_fee'], field='total_fee') if 'total_fee' in changes else None

    try:
        with transaction.atomic():
            try:
                student = Student.objects.select_for_update().get(pk=student_id)
            except Student.DoesNotExist:
                raise NotFound(f'Student {student_id} not found')

            phone = changes.get('phone')
            if phone and phone != student.phone and Student.objects.filter(phone=phone).exists():
                raise DuplicateStudent()

            for field in PROFILE_FIELDS:
                if field in changes:
                    setattr(student, field, changes[field])

            if new_total is not None and new_total != student.total_fee:
                old_due = student.fee_due
                student.total_fee = new_total
                ledger.apply_to(student, ledger.recompute_for_total(new_total, student.fee_paid))
                logger.info(
                    f"[STUDENT-EDIT] student_id={student.pk}: total_fee -> {new_total}, "
                    f"fee_due {old_due} -> {student.fee_due}"
                )
            student.save()
    except IntegrityError as exc:
        if is_duplicate_phone(exc):
            raise DuplicateStudent() from exc
        logger.error(f"[STUDENT-EDIT] Constraint violation for student_id={student_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    except DatabaseError as exc:
        logger.error(f"[STUDENT-EDIT] Transaction failed for student_id={student_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return student


def delete_student(student_id):
    """Delete a student's payments, then the student, in one transaction."""
    try:
        with transaction.atomic():
            try:
                student = Student.objects.select_for_update().get(pk=student_id)
            except Student.DoesNotExist:
                raise NotFound(f'Student {student_id} not found')
            deleted_payments, _ = student.payments.all().delete()
            student.delete()
            logger.info(f"[STUDENT-DELETE] student_id={student_id}, payments deleted={deleted_payments}")
    except DatabaseError as exc:
        logger.error(f"[STUDENT-DELETE] Transaction failed for student_id={student_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return deleted_payments
