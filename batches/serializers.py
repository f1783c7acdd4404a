"""
Serializers for batches app
"""
from decimal import Decimal

from rest_framework import serializers
from django.contrib.auth import get_user_model

from .models import Batch

User = get_user_model()


class BatchSerializer(serializers.ModelSerializer):
    """camelCase at the boundary; fee as a 2dp string."""
    startDate = serializers.DateField(source='start_date')
    endDate = serializers.DateField(source='end_date')
    fee = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    isActive = serializers.BooleanField(source='is_active', required=False)
    trainerId = serializers.PrimaryKeyRelatedField(
        source='trainer',
        queryset=User.objects.filter(role='trainer'),
        required=False,
        allow_null=True,
    )
    trainerName = serializers.CharField(source='trainer.full_name', read_only=True, default=None)
    studentCount = serializers.IntegerField(source='student_count', read_only=True)
    description = serializers.CharField(required=False, allow_blank=True)

    class Meta:
        model = Batch
        fields = [
            'id', 'name', 'description', 'startDate', 'endDate', 'fee', 'capacity',
            'isActive', 'trainerId', 'trainerName', 'studentCount',
        ]
        read_only_fields = ['id']

    def validate(self, attrs):
        start = attrs.get('start_date') or getattr(self.instance, 'start_date', None)
        end = attrs.get('end_date') or getattr(self.instance, 'end_date', None)
        if start and end and end < start:
            raise serializers.ValidationError({'endDate': 'End date cannot be before start date.'})
        return attrs
