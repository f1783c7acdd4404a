"""
Student: enrolled learner and owner of the fee ledger (total_fee, fee_paid, fee_due).
"""
from decimal import Decimal

from django.db import models


class Student(models.Model):
    """
    fee_due == total_fee - fee_paid after every committed mutation.
    fee_paid/fee_due are only written through students.ledger; a negative fee_due is a credit balance.
    """
    organization = models.ForeignKey(
        'core.Organization',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students',
        db_column='organization_id',
    )
    batch = models.ForeignKey(
        'batches.Batch',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='students',
        db_column='batch_id',
    )
    converted_from_lead = models.ForeignKey(
        'leads.Lead',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='converted_students',
        db_column='converted_from_lead_id',
    )
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(blank=True, null=True)
    parent_mobile = models.CharField(max_length=20, blank=True, null=True)
    enrollment_date = models.DateField()
    total_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    # No MinValueValidator: fee_due may go negative (overpayment -> credit balance)
    fee_paid = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    fee_due = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    is_active = models.BooleanField(default=True, db_index=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students'
        verbose_name = 'Student'
        verbose_name_plural = 'Students'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.phone})"

    @property
    def credit_balance(self):
        """Amount paid beyond total_fee; 0 unless the student overpaid."""
        if self.fee_due is None or self.fee_due >= 0:
            return Decimal('0.00')
        return -self.fee_due

    @property
    def batch_name(self):
        return self.batch.name if self.batch_id else None
