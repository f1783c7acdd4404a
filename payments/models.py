"""
Payment models
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from accounts.models import User
from students.models import Student


class Payment(models.Model):
    """
    One fee payment. The sum of a student's payment amounts equals student.fee_paid;
    rows are written only through payments.services (or the conversion pipeline).
    """
    METHOD_CASH = 'cash'
    METHOD_CHECK = 'check'
    METHOD_BANK_TRANSFER = 'bank_transfer'
    METHOD_ONLINE = 'online'
    METHOD_OTHER = 'other'
    METHOD_CHOICES = [
        (METHOD_CASH, 'Cash'),
        (METHOD_CHECK, 'Check'),
        (METHOD_BANK_TRANSFER, 'Bank Transfer'),
        (METHOD_ONLINE, 'Online'),
        (METHOD_OTHER, 'Other'),
    ]

    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
        db_column='organization_id',
    )
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='payments',
        db_column='student_id',
    )
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=METHOD_CASH)
    reference = models.CharField(max_length=255, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    next_payment_due_date = models.DateField(blank=True, null=True)
    idempotency_key = models.CharField(max_length=64, blank=True, null=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_payments',
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-payment_date', '-created_at']
        indexes = [
            models.Index(fields=['student', 'payment_date'], name='payments_student_date_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'idempotency_key'],
                name='payments_student_idempotency_uniq',
            ),
        ]

    def __str__(self):
        return f"Payment {self.id} - {self.student.name} - {self.amount}"

    @property
    def method_label(self):
        """'bank_transfer' -> 'Bank transfer' (invoice line description)."""
        method = self.payment_method or self.METHOD_CASH
        return method.replace('_', ' ').capitalize()
