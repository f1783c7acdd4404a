"""
Payment Recorder / Payment Editor: ledger moves with every payment, atomically.
"""
from datetime import date
from decimal import Decimal
from unittest import mock

from django.core import mail
from django.db import DatabaseError
from django.db.models import Sum
from django.test import TestCase
from rest_framework.exceptions import ValidationError

from core.exceptions import InvalidAmount, NotFound, PersistenceError
from notifications.channel import NotificationChannel
from payments.models import Payment
from payments.services import record_payment, update_payment
from students.models import Student
from tests.fixtures import InstituteFixtureMixin


class PaymentRecorderTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.channel = NotificationChannel(run_async=False)
        self.student = self.make_student(total_fee="50000.00", fee_paid="10000.00")
        Payment.objects.create(
            organization=self.org,
            student=self.student,
            amount=Decimal("10000.00"),
            payment_date=date(2026, 1, 10),
            payment_method=Payment.METHOD_CASH,
        )

    def assertLedger(self, fee_paid, fee_due):
        student = Student.objects.get(pk=self.student.pk)
        self.assertEqual(student.fee_paid, Decimal(fee_paid))
        self.assertEqual(student.fee_due, Decimal(fee_due))
        total = student.payments.aggregate(total=Sum("amount"))["total"]
        self.assertEqual(total, student.fee_paid)
        self.assertEqual(student.fee_paid + student.fee_due, student.total_fee)

    def test_record_then_edit_moves_ledger_by_delta(self):
        payment = record_payment(self.student.pk, "15000", payment_method="online",
                                 channel=self.channel)
        self.assertEqual(payment.amount, Decimal("15000.00"))
        self.assertLedger("25000.00", "25000.00")

        update_payment(payment.pk, {"amount": Decimal("20000.00")})
        self.assertLedger("30000.00", "20000.00")

        update_payment(payment.pk, {"amount": Decimal("12000.00")})
        self.assertLedger("22000.00", "28000.00")

    def test_defaults_date_today_and_method_cash(self):
        payment = record_payment(self.student.pk, "100.00", channel=self.channel)
        self.assertEqual(payment.payment_method, Payment.METHOD_CASH)
        self.assertIsNotNone(payment.payment_date)
        self.assertFalse(payment.replayed)

    def test_zero_amount_is_recorded_without_moving_ledger(self):
        payment = record_payment(self.student.pk, "0", channel=self.channel)
        self.assertEqual(payment.amount, Decimal("0.00"))
        self.assertLedger("10000.00", "40000.00")

    def test_unknown_student(self):
        with self.assertRaises(NotFound):
            record_payment(999999, "100.00", channel=self.channel)
        self.assertEqual(Payment.objects.count(), 1)

    def test_invalid_amounts_leave_ledger_untouched(self):
        for amount in ("-5", "abc", "1.001", None):
            with self.subTest(amount=amount):
                with self.assertRaises(InvalidAmount):
                    record_payment(self.student.pk, amount, channel=self.channel)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertLedger("10000.00", "40000.00")

    def test_invalid_method_rejected(self):
        with self.assertRaises(ValidationError):
            record_payment(self.student.pk, "100", payment_method="barter", channel=self.channel)
        self.assertLedger("10000.00", "40000.00")

    def test_overpayment_goes_negative_and_shows_credit(self):
        record_payment(self.student.pk, "45000", channel=self.channel)
        self.assertLedger("55000.00", "-5000.00")
        self.assertEqual(Student.objects.get(pk=self.student.pk).credit_balance, Decimal("5000.00"))

    def test_idempotency_key_replays_first_payment(self):
        first = record_payment(self.student.pk, "5000", idempotency_key="req-1", channel=self.channel)
        again = record_payment(self.student.pk, "5000", idempotency_key="req-1", channel=self.channel)
        self.assertEqual(first.pk, again.pk)
        self.assertTrue(again.replayed)
        self.assertEqual(Payment.objects.filter(student=self.student).count(), 2)
        self.assertLedger("15000.00", "35000.00")

    def test_idempotency_key_is_scoped_per_student(self):
        other = self.make_student(phone="9000000002")
        record_payment(self.student.pk, "100", idempotency_key="same", channel=self.channel)
        payment = record_payment(other.pk, "100", idempotency_key="same", channel=self.channel)
        self.assertFalse(payment.replayed)
        self.assertEqual(Student.objects.get(pk=other.pk).fee_paid, Decimal("100.00"))

    def test_database_failure_rolls_back_payment_and_ledger(self):
        with mock.patch("students.ledger.apply_to", side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceError):
                record_payment(self.student.pk, "500", channel=self.channel)
        self.assertEqual(Payment.objects.count(), 1)
        self.assertLedger("10000.00", "40000.00")


class PaymentEditorTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.channel = NotificationChannel(run_async=False)
        self.student = self.make_student(total_fee="30000.00")
        self.payment = record_payment(self.student.pk, "10000", channel=self.channel)

    def test_non_amount_edit_leaves_ledger(self):
        payment = update_payment(self.payment.pk, {
            "reference": "TXN-42",
            "notes": "Paid at counter",
            "payment_method": Payment.METHOD_BANK_TRANSFER,
            "next_payment_due_date": date(2026, 3, 1),
        })
        self.assertEqual(payment.reference, "TXN-42")
        self.assertEqual(payment.payment_method, Payment.METHOD_BANK_TRANSFER)
        student = Student.objects.get(pk=self.student.pk)
        self.assertEqual(student.fee_paid, Decimal("10000.00"))
        self.assertEqual(student.fee_due, Decimal("20000.00"))

    def test_same_amount_is_a_no_op_for_ledger(self):
        update_payment(self.payment.pk, {"amount": "10000.00"})
        self.assertEqual(Student.objects.get(pk=self.student.pk).fee_paid, Decimal("10000.00"))

    def test_unknown_payment(self):
        with self.assertRaises(NotFound):
            update_payment(999999, {"amount": "1.00"})

    def test_malformed_payment_id_is_not_found(self):
        for payment_id in ("abc", None):
            with self.subTest(payment_id=payment_id):
                with self.assertRaises(NotFound):
                    update_payment(payment_id, {"notes": "late"})
        self.assertIsNone(Payment.objects.get(pk=self.payment.pk).notes)

    def test_student_cannot_be_changed(self):
        with self.assertRaises(ValidationError):
            update_payment(self.payment.pk, {"student_id": 5})

    def test_negative_amount_rejected(self):
        with self.assertRaises(InvalidAmount):
            update_payment(self.payment.pk, {"amount": "-1"})
        self.assertEqual(Payment.objects.get(pk=self.payment.pk).amount, Decimal("10000.00"))

    def test_payment_date_cannot_be_cleared(self):
        with self.assertRaises(ValidationError):
            update_payment(self.payment.pk, {"payment_date": None})


class PaymentReceiptTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()
        self.channel = NotificationChannel(run_async=False)
        self.student = self.make_student(total_fee="50000.00")

    def test_receipt_sent_only_after_commit(self):
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            record_payment(self.student.pk, "15000", payment_date=date(2026, 2, 1), channel=self.channel)
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(len(callbacks), 1)

        callbacks[0]()
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["asha@student.test"])
        self.assertEqual(message.subject, "Payment Receipt - IgniteLabs")
        self.assertIn("Rs. 15000.00", message.body)
        self.assertIn("Rs. 35000.00", message.body)
        self.assertIn("February 1, 2026", message.body)

    def test_no_receipt_without_student_email(self):
        self.student.email = None
        self.student.save()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            record_payment(self.student.pk, "100", channel=self.channel)
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)

    def test_failed_rollback_sends_nothing(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with mock.patch("students.ledger.apply_to", side_effect=DatabaseError("boom")):
                with self.assertRaises(PersistenceError):
                    record_payment(self.student.pk, "100", channel=self.channel)
        self.assertEqual(callbacks, [])
        self.assertEqual(len(mail.outbox), 0)

    def test_notifier_failure_does_not_affect_payment(self):
        notifier = mock.Mock()
        notifier.send_payment_receipt.side_effect = RuntimeError("smtp down")
        with self.captureOnCommitCallbacks(execute=True):
            payment = record_payment(self.student.pk, "2500", notifier=notifier, channel=self.channel)
        notifier.send_payment_receipt.assert_called_once()
        self.assertTrue(Payment.objects.filter(pk=payment.pk).exists())
        self.assertEqual(Student.objects.get(pk=self.student.pk).fee_paid, Decimal("2500.00"))
