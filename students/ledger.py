"""
Fee ledger arithmetic for a student's (total_fee, fee_paid, fee_due) triple.

Every function returns a new LedgerState; callers persist it onto the Student
while holding its row lock (see payments.services and students.services).
"""
import logging
from collections import namedtuple
from decimal import Decimal

from django.db.models import Sum

from core.money import to_decimal

logger = logging.getLogger(__name__)

LedgerState = namedtuple('LedgerState', ['fee_paid', 'fee_due'])


def initialize(total_fee, initial_payment=0):
    """
    Opening ledger for a new student: fee_paid = initial_payment, fee_due = total_fee - initial_payment.
    Raises InvalidAmount if either amount is negative or non-numeric.
    """
    total = to_decimal(total_fee, field='total_fee')
    paid = to_decimal(initial_payment if initial_payment is not None else 0, field='initial_payment')
    return LedgerState(fee_paid=paid, fee_due=total - paid)


def apply_payment_delta(current, delta):
    """
    Shift a ledger by a signed payment delta: new payment (delta = amount)
    or an edited amount (delta = new - old, possibly negative).
    fee_due is not clamped.
    """
    delta = to_decimal(delta, allow_negative=True, field='delta')
    return LedgerState(fee_paid=current.fee_paid + delta, fee_due=current.fee_due - delta)


def recompute_for_total(total_fee, fee_paid):
    """Ledger after an administrative change to total_fee; fee_paid is unchanged."""
    total = to_decimal(total_fee, field='total_fee')
    return LedgerState(fee_paid=fee_paid, fee_due=total - fee_paid)


def state_of(student):
    return LedgerState(fee_paid=student.fee_paid, fee_due=student.fee_due)


def apply_to(student, state):
    """Copy a ledger state onto the instance. Returns the update_fields list for save()."""
    student.fee_paid = state.fee_paid
    student.fee_due = state.fee_due
    return ['fee_paid', 'fee_due', 'updated_at']


def payments_total(student):
    total = student.payments.aggregate(total=Sum('amount'))['total']
    return total if total is not None else Decimal('0.00')


def audit(student):
    """
    Compare the stored triple with the payment rows.
    consistent is True when fee_paid == sum(payments) and fee_due == total_fee - fee_paid.
    """
    paid_from_rows = payments_total(student)
    expected_due = student.total_fee - student.fee_paid
    return {
        'total_fee': student.total_fee,
        'fee_paid': student.fee_paid,
        'fee_due': student.fee_due,
        'payments_total': paid_from_rows,
        'credit_balance': student.credit_balance,
        'consistent': paid_from_rows == student.fee_paid and expected_due == student.fee_due,
    }
