"""
Payment Recorder and Payment Editor.

Both run in one transaction holding SELECT ... FOR UPDATE on the owning
Student row, so concurrent payments for the same student serialize and the
ledger never loses an update. Lock order is always Student, then Payment.
Receipt emails are queued on commit and never affect the result.
"""
import logging
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.exceptions import NotFound, PersistenceError
from core.money import to_decimal
from notifications.dispatch import queue_payment_receipt
from students import ledger
from students.models import Student
from .models import Payment

logger = logging.getLogger(__name__)

METHODS = {choice for choice, _ in Payment.METHOD_CHOICES}
EDITABLE_FIELDS = ('amount', 'payment_date', 'payment_method', 'reference', 'notes', 'next_payment_due_date')


def lock_student(student_id):
    """Student row locked for the rest of the current transaction."""
    try:
        return Student.objects.select_for_update().get(pk=student_id)
    except (Student.DoesNotExist, ValueError, TypeError):
        raise NotFound(f'Student {student_id} not found')


def _clean_method(method):
    method = method or Payment.METHOD_CASH
    if method not in METHODS:
        raise ValidationError({'paymentMethod': f'"{method}" is not a valid payment method.'})
    return method


def create_payment_row(student, amount, payment_date=None, payment_method=None, reference=None,
                       notes=None, next_payment_due_date=None, idempotency_key=None, created_by=None):
    """
    Insert a Payment row for an already-locked student. Does not touch the ledger;
    callers inside a ledger transaction decide how fee_paid moves.
    """
    return Payment.objects.create(
        organization_id=student.organization_id,
        student=student,
        amount=amount,
        payment_date=payment_date or timezone.localdate(),
        payment_method=_clean_method(payment_method),
        reference=reference or None,
        notes=notes or None,
        next_payment_due_date=next_payment_due_date,
        idempotency_key=idempotency_key or None,
        created_by=created_by,
    )


def record_payment(student_id, amount, payment_date=None, payment_method=None, reference=None,
                   notes=None, next_payment_due_date=None, idempotency_key=None, created_by=None,
                   notifier=None, channel=None):
    """
    Record a payment and add it to the student's ledger atomically.

    A repeated idempotency_key for the same student returns the payment stored
    the first time (payment.replayed is True) and leaves the ledger alone.
    Raises NotFound, InvalidAmount or PersistenceError.
    """
    amount = to_decimal(amount)
    try:
        with transaction.atomic():
            student = lock_student(student_id)

            if idempotency_key:
                existing = Payment.objects.filter(student=student, idempotency_key=idempotency_key).first()
                if existing is not None:
                    logger.info(
                        f"[PAYMENT] Replayed idempotency_key={idempotency_key!r}: "
                        f"student_id={student.pk}, payment_id={existing.pk}"
                    )
                    existing.replayed = True
                    return existing

            payment = create_payment_row(
                student,
                amount,
                payment_date=payment_date,
                payment_method=payment_method,
                reference=reference,
                notes=notes,
                next_payment_due_date=next_payment_due_date,
                idempotency_key=idempotency_key,
                created_by=created_by,
            )

            old = ledger.state_of(student)
            new = ledger.apply_payment_delta(old, amount)
            student.save(update_fields=ledger.apply_to(student, new))
            logger.info(
                f"[PAYMENT] Recorded payment_id={payment.pk}: student_id={student.pk}, amount={amount}, "
                f"fee_paid {old.fee_paid} -> {new.fee_paid}, fee_due {old.fee_due} -> {new.fee_due}"
            )

            payment.student = student
            payment.replayed = False
            queue_payment_receipt(payment, student, notifier=notifier, channel=channel)
    except DatabaseError as exc:
        logger.error(f"[PAYMENT] Transaction failed for student_id={student_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return payment


def update_payment(payment_id, changes):
    """
    Apply a partial update to a payment. When the amount changes, the owning
    student's ledger moves by delta = new - old in the same transaction.
    Raises NotFound, InvalidAmount, ValidationError or PersistenceError.
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError({field: 'This field cannot be changed.' for field in sorted(unknown)})

    new_amount = to_decimal(changes['amount']) if 'amount' in changes else None
    try:
        with transaction.atomic():
            try:
                student_id = (
                    Payment.objects.filter(pk=payment_id).values_list('student_id', flat=True).first()
                )
            except (ValueError, TypeError):
                student_id = None
            if student_id is None:
                raise NotFound(f'Payment {payment_id} not found')
            student = lock_student(student_id)
            try:
                payment = Payment.objects.select_for_update().get(pk=payment_id, student_id=student_id)
            except Payment.DoesNotExist:
                raise NotFound(f'Payment {payment_id} not found')

            old_amount = payment.amount
            delta = Decimal('0.00')
            if new_amount is not None and new_amount != old_amount:
                delta = new_amount - old_amount
                payment.amount = new_amount
            for field in EDITABLE_FIELDS:
                if field == 'amount' or field not in changes:
                    continue
                value = changes[field]
                if field == 'payment_method':
                    value = _clean_method(value)
                elif field == 'payment_date' and value is None:
                    raise ValidationError({'paymentDate': 'This field may not be null.'})
                setattr(payment, field, value)
            payment.save()

            if delta:
                old = ledger.state_of(student)
                new = ledger.apply_payment_delta(old, delta)
                student.save(update_fields=ledger.apply_to(student, new))
                logger.info(
                    f"[PAYMENT-EDIT] payment_id={payment.pk}: amount {old_amount} -> {new_amount} (delta={delta}), "
                    f"student_id={student.pk}, fee_paid {old.fee_paid} -> {new.fee_paid}, "
                    f"fee_due {old.fee_due} -> {new.fee_due}"
                )
            else:
                logger.info(f"[PAYMENT-EDIT] payment_id={payment.pk}: no amount change, ledger untouched")
            payment.student = student
    except DatabaseError as exc:
        logger.error(f"[PAYMENT-EDIT] Transaction failed for payment_id={payment_id}: {exc}", exc_info=True)
        raise PersistenceError() from exc
    return payment
