"""
Serializers for leads app
"""
from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import get_user_model

from payments.models import Payment
from .models import Lead

User = get_user_model()


class LeadSerializer(serializers.ModelSerializer):
    """Lead read/write shape for staff"""
    assignedTo = serializers.PrimaryKeyRelatedField(
        source='assigned_to',
        queryset=User.objects.exclude(role='student'),
        required=False,
        allow_null=True,
    )
    assignedToName = serializers.CharField(source='assigned_to.full_name', read_only=True, default=None)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    convertedAt = serializers.DateTimeField(source='converted_at', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Lead
        fields = [
            'id', 'name', 'phone', 'email', 'source', 'course', 'status', 'notes',
            'assignedTo', 'assignedToName', 'convertedAt', 'createdAt',
        ]
        read_only_fields = ['id']

    def to_changes(self):
        return dict(self.validated_data)


class PublicLeadSerializer(serializers.Serializer):
    """Public lead form: no status, no assignment"""
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    source = serializers.CharField(required=False, allow_blank=True, max_length=100)
    course = serializers.CharField(required=False, allow_blank=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True)


class LeadConversionSerializer(serializers.Serializer):
    """
    Conversion input. Required fields are checked by the pipeline itself
    (MissingField), so everything is optional here and only types are validated.
    """
    batchId = serializers.IntegerField(required=False, allow_null=True)
    enrollmentDate = serializers.DateField(required=False, allow_null=True)
    totalFee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                        required=False, allow_null=True)
    initialPayment = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                              required=False, allow_null=True)
    paymentMethod = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False, allow_null=True,
                                            allow_blank=True)
    reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    paymentNotes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            'batch_id': data.get('batchId'),
            'enrollment_date': data.get('enrollmentDate'),
            'total_fee': data.get('totalFee'),
            'initial_payment': data.get('initialPayment'),
            'payment_method': data.get('paymentMethod') or None,
            'reference': data.get('reference'),
            'payment_notes': data.get('paymentNotes'),
            'notes': data.get('notes'),
        }
