"""
Serializers for payments app.
camelCase here only; services and models work in snake_case.
"""
from decimal import Decimal

from rest_framework import serializers

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Payment read shape. amount is a 2dp string."""
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    studentName = serializers.CharField(source='student.name', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True, read_only=True)
    paymentDate = serializers.DateField(source='payment_date', read_only=True)
    paymentMethod = serializers.CharField(source='payment_method', read_only=True)
    nextPaymentDueDate = serializers.DateField(source='next_payment_due_date', read_only=True)
    idempotencyKey = serializers.CharField(source='idempotency_key', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'studentId', 'studentName', 'amount', 'paymentDate', 'paymentMethod',
            'reference', 'notes', 'nextPaymentDueDate', 'idempotencyKey', 'createdAt',
        ]
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    """Payment create input (studentId may come from the URL instead)."""
    studentId = serializers.IntegerField(required=False)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    paymentDate = serializers.DateField(required=False, allow_null=True)
    paymentMethod = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False, default=Payment.METHOD_CASH)
    reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nextPaymentDueDate = serializers.DateField(required=False, allow_null=True)
    idempotencyKey = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            'amount': data['amount'],
            'payment_date': data.get('paymentDate'),
            'payment_method': data.get('paymentMethod'),
            'reference': data.get('reference'),
            'notes': data.get('notes'),
            'next_payment_due_date': data.get('nextPaymentDueDate'),
            'idempotency_key': data.get('idempotencyKey') or None,
        }


class PaymentUpdateSerializer(serializers.Serializer):
    """Partial payment edit. Only supplied fields are changed."""
    FIELD_MAP = {
        'amount': 'amount',
        'paymentDate': 'payment_date',
        'paymentMethod': 'payment_method',
        'reference': 'reference',
        'notes': 'notes',
        'nextPaymentDueDate': 'next_payment_due_date',
    }

    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    paymentDate = serializers.DateField(required=False)
    paymentMethod = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False)
    reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nextPaymentDueDate = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        if 'studentId' in self.initial_data:
            raise serializers.ValidationError({'studentId': 'A payment cannot be moved to another student.'})
        return attrs

    def to_changes(self):
        return {self.FIELD_MAP[key]: value for key, value in self.validated_data.items()}
