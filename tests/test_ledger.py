"""
Fee ledger arithmetic and amount parsing.
"""
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from core.exceptions import InvalidAmount
from core.money import to_decimal, format_currency
from students import ledger
from tests.fixtures import InstituteFixtureMixin


class ToDecimalTests(SimpleTestCase):

    def test_accepts_strings_ints_and_decimals(self):
        self.assertEqual(to_decimal("15000"), Decimal("15000.00"))
        self.assertEqual(to_decimal(250), Decimal("250.00"))
        self.assertEqual(to_decimal(Decimal("99.5")), Decimal("99.50"))
        self.assertEqual(to_decimal(" 10.25 "), Decimal("10.25"))

    def test_float_goes_through_str(self):
        self.assertEqual(to_decimal(1999.99), Decimal("1999.99"))

    def test_zero_is_valid(self):
        self.assertEqual(to_decimal("0"), Decimal("0.00"))

    def test_rejects_garbage(self):
        for value in (None, "", "abc", "1e", True, "NaN", "Infinity"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidAmount):
                    to_decimal(value)

    def test_rejects_negative_unless_allowed(self):
        with self.assertRaises(InvalidAmount):
            to_decimal("-1.00")
        self.assertEqual(to_decimal("-1.00", allow_negative=True), Decimal("-1.00"))

    def test_rejects_more_than_two_places(self):
        with self.assertRaises(InvalidAmount):
            to_decimal("10.001")

    def test_rejects_out_of_range(self):
        with self.assertRaises(InvalidAmount):
            to_decimal("10000000000.00")

    def test_error_names_the_field(self):
        with self.assertRaises(InvalidAmount) as ctx:
            to_decimal("x", field="total_fee")
        self.assertIn("total_fee", str(ctx.exception.detail))

    def test_format_currency(self):
        self.assertEqual(format_currency(Decimal("15000")), "Rs. 15000.00")
        self.assertEqual(format_currency(Decimal("-500"), prefix="INR"), "INR -500.00")


class LedgerArithmeticTests(SimpleTestCase):

    def test_initialize_with_initial_payment(self):
        state = ledger.initialize("50000", "10000")
        self.assertEqual(state.fee_paid, Decimal("10000.00"))
        self.assertEqual(state.fee_due, Decimal("40000.00"))

    def test_initialize_without_payment(self):
        state = ledger.initialize("50000")
        self.assertEqual(state, ledger.LedgerState(Decimal("0.00"), Decimal("50000.00")))
        self.assertEqual(ledger.initialize("50000", None).fee_due, Decimal("50000.00"))

    def test_initialize_rejects_negative(self):
        with self.assertRaises(InvalidAmount):
            ledger.initialize("-1")
        with self.assertRaises(InvalidAmount):
            ledger.initialize("100", "-5")

    def test_apply_positive_and_negative_delta(self):
        state = ledger.LedgerState(Decimal("25000.00"), Decimal("25000.00"))
        raised = ledger.apply_payment_delta(state, "5000")
        self.assertEqual(raised, ledger.LedgerState(Decimal("30000.00"), Decimal("20000.00")))
        lowered = ledger.apply_payment_delta(raised, "-7500")
        self.assertEqual(lowered, ledger.LedgerState(Decimal("22500.00"), Decimal("27500.00")))

    def test_fee_due_is_not_clamped(self):
        state = ledger.LedgerState(Decimal("45000.00"), Decimal("5000.00"))
        over = ledger.apply_payment_delta(state, "8000")
        self.assertEqual(over.fee_due, Decimal("-3000.00"))

    def test_recompute_for_total_keeps_fee_paid(self):
        state = ledger.recompute_for_total("60000", Decimal("10000.00"))
        self.assertEqual(state, ledger.LedgerState(Decimal("10000.00"), Decimal("50000.00")))


class LedgerAuditTests(InstituteFixtureMixin, TestCase):

    def setUp(self):
        self.make_institute()

    def test_fresh_student_is_consistent(self):
        student = self.make_student()
        report = ledger.audit(student)
        self.assertTrue(report["consistent"])
        self.assertEqual(report["payments_total"], Decimal("0.00"))

    def test_drift_is_reported(self):
        student = self.make_student(fee_paid="5000.00")
        report = ledger.audit(student)
        self.assertFalse(report["consistent"])
        self.assertEqual(report["fee_paid"], Decimal("5000.00"))

    def test_credit_balance_property(self):
        student = self.make_student(total_fee="1000.00", fee_paid="1500.00")
        self.assertEqual(student.credit_balance, Decimal("500.00"))
        self.assertEqual(self.make_student(phone="9000000002").credit_balance, Decimal("0.00"))
