"""
Serializers for students app
"""
from decimal import Decimal

from rest_framework import serializers

from batches.models import Batch
from payments.models import Payment
from .models import Student


class StudentSerializer(serializers.ModelSerializer):
    """Student read shape; ledger amounts are 2dp strings."""
    parentMobile = serializers.CharField(source='parent_mobile', read_only=True)
    enrollmentDate = serializers.DateField(source='enrollment_date', read_only=True)
    batchId = serializers.IntegerField(source='batch_id', read_only=True, allow_null=True)
    batchName = serializers.CharField(source='batch_name', read_only=True, allow_null=True)
    totalFee = serializers.DecimalField(source='total_fee', max_digits=12, decimal_places=2, read_only=True)
    feePaid = serializers.DecimalField(source='fee_paid', max_digits=12, decimal_places=2, read_only=True)
    feeDue = serializers.DecimalField(source='fee_due', max_digits=12, decimal_places=2, read_only=True)
    creditBalance = serializers.DecimalField(source='credit_balance', max_digits=12, decimal_places=2, read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    convertedFromLeadId = serializers.IntegerField(source='converted_from_lead_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Student
        fields = [
            'id', 'name', 'phone', 'email', 'parentMobile', 'enrollmentDate', 'batchId', 'batchName',
            'totalFee', 'feePaid', 'feeDue', 'creditBalance', 'isActive', 'notes',
            'convertedFromLeadId', 'createdAt',
        ]
        read_only_fields = fields


class StudentCreateSerializer(serializers.Serializer):
    """Direct enrollment input"""
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    parentMobile = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    batchId = serializers.PrimaryKeyRelatedField(queryset=Batch.objects.all(), required=False, allow_null=True)
    enrollmentDate = serializers.DateField()
    totalFee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    initialPayment = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True,
    )
    paymentMethod = serializers.ChoiceField(choices=Payment.METHOD_CHOICES, required=False, allow_null=True)
    reference = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        initial = attrs.get('initialPayment')
        if initial and initial > 0 and not attrs.get('paymentMethod'):
            raise serializers.ValidationError({'paymentMethod': 'Payment method is required with an initial payment.'})
        return attrs

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            'name': data['name'],
            'phone': data['phone'],
            'email': data.get('email'),
            'parent_mobile': data.get('parentMobile'),
            'batch': data.get('batchId'),
            'enrollment_date': data['enrollmentDate'],
            'total_fee': data['totalFee'],
            'initial_payment': data.get('initialPayment'),
            'payment_method': data.get('paymentMethod'),
            'payment_reference': data.get('reference'),
            'notes': data.get('notes'),
        }


class StudentUpdateSerializer(serializers.Serializer):
    """Administrative edit. feePaid/feeDue are rejected; totalFee recomputes feeDue."""
    FIELD_MAP = {
        'name': 'name',
        'phone': 'phone',
        'email': 'email',
        'parentMobile': 'parent_mobile',
        'batchId': 'batch',
        'enrollmentDate': 'enrollment_date',
        'totalFee': 'total_fee',
        'isActive': 'is_active',
        'notes': 'notes',
    }

    name = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    parentMobile = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=20)
    batchId = serializers.PrimaryKeyRelatedField(queryset=Batch.objects.all(), required=False, allow_null=True)
    enrollmentDate = serializers.DateField(required=False)
    totalFee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False)
    isActive = serializers.BooleanField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        locked = [key for key in ('feePaid', 'feeDue', 'fee_paid', 'fee_due') if key in self.initial_data]
        if locked:
            raise serializers.ValidationError(
                {key: 'Derived from payments; cannot be set.' for key in locked}
            )
        return attrs

    def to_changes(self):
        return {self.FIELD_MAP[key]: value for key, value in self.validated_data.items()}


class LedgerSerializer(serializers.Serializer):
    """Audit view of a student's ledger against their payment rows"""
    studentId = serializers.IntegerField()
    totalFee = serializers.DecimalField(source='total_fee', max_digits=12, decimal_places=2)
    feePaid = serializers.DecimalField(source='fee_paid', max_digits=12, decimal_places=2)
    feeDue = serializers.DecimalField(source='fee_due', max_digits=12, decimal_places=2)
    paymentsTotal = serializers.DecimalField(source='payments_total', max_digits=12, decimal_places=2)
    creditBalance = serializers.DecimalField(source='credit_balance', max_digits=12, decimal_places=2)
    consistent = serializers.BooleanField()
