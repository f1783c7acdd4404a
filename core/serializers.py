"""
Serializers for organization settings
"""
from rest_framework import serializers


class SettingsBagSerializer(serializers.Serializer):
    """Maps camelCase form fields onto settings bag keys. Subclasses declare the fields."""
    FIELD_TO_KEY = {}
    BOOLEAN_FIELDS = set()

    def to_settings(self):
        """Validated data keyed by storage key; booleans stored as 'true'/'false'."""
        values = {}
        for field, value in self.validated_data.items():
            if field in self.BOOLEAN_FIELDS:
                value = 'true' if value else 'false'
            values[self.FIELD_TO_KEY[field]] = value
        return values

    @classmethod
    def from_settings(cls, stored):
        data = {}
        for field, key in cls.FIELD_TO_KEY.items():
            value = stored.get(key, '')
            if field in cls.BOOLEAN_FIELDS:
                value = str(value or 'true').lower() == 'true'
            data[field] = value
        return data


class OrganizationSettingsSerializer(SettingsBagSerializer):
    """camelCase settings form <-> settings bag keys."""
    FIELD_TO_KEY = {
        'organizationName': 'organization_name',
        'organizationAddress': 'organization_address',
        'organizationPhone': 'organization_phone',
        'organizationEmail': 'organization_email',
        'organizationWebsite': 'organization_website',
        'organizationGstin': 'organization_gstin',
        'organizationLogo': 'organization_logo',
        'emailNotificationsEnabled': 'email_notifications_enabled',
        'emailStudentRegistration': 'email_student_registration',
        'emailPaymentReceipt': 'email_payment_receipt',
        'emailNewLeadNotification': 'email_new_lead_notification',
        'emailFromAddress': 'email_from_address',
        'adminEmail': 'admin_email',
    }
    BOOLEAN_FIELDS = {
        'emailNotificationsEnabled', 'emailStudentRegistration',
        'emailPaymentReceipt', 'emailNewLeadNotification',
    }

    organizationName = serializers.CharField(required=False, allow_blank=True, max_length=255)
    organizationAddress = serializers.CharField(required=False, allow_blank=True)
    organizationPhone = serializers.CharField(required=False, allow_blank=True, max_length=50)
    organizationEmail = serializers.EmailField(required=False, allow_blank=True)
    organizationWebsite = serializers.CharField(required=False, allow_blank=True, max_length=255)
    organizationGstin = serializers.CharField(required=False, allow_blank=True, max_length=20)
    organizationLogo = serializers.CharField(required=False, allow_blank=True, max_length=255)
    emailNotificationsEnabled = serializers.BooleanField(required=False)
    emailStudentRegistration = serializers.BooleanField(required=False)
    emailPaymentReceipt = serializers.BooleanField(required=False)
    emailNewLeadNotification = serializers.BooleanField(required=False)
    emailFromAddress = serializers.CharField(required=False, allow_blank=True, max_length=255)
    adminEmail = serializers.EmailField(required=False, allow_blank=True)


class EmailNotificationSettingsSerializer(SettingsBagSerializer):
    """The email toggles and sender/recipient addresses on their own."""
    FIELD_TO_KEY = {
        'emailNotificationsEnabled': 'email_notifications_enabled',
        'studentRegistration': 'email_student_registration',
        'paymentReceipt': 'email_payment_receipt',
        'leadNotification': 'email_new_lead_notification',
        'fromAddress': 'email_from_address',
        'adminEmail': 'admin_email',
    }
    BOOLEAN_FIELDS = {'emailNotificationsEnabled', 'studentRegistration', 'paymentReceipt', 'leadNotification'}

    emailNotificationsEnabled = serializers.BooleanField(required=False)
    studentRegistration = serializers.BooleanField(required=False)
    paymentReceipt = serializers.BooleanField(required=False)
    leadNotification = serializers.BooleanField(required=False)
    fromAddress = serializers.CharField(required=False, allow_blank=True, max_length=255)
    adminEmail = serializers.EmailField(required=False, allow_blank=True)


class TestEmailSerializer(serializers.Serializer):
    TYPE_CHOICES = ('registration', 'payment_receipt', 'lead')

    email = serializers.EmailField()
    type = serializers.ChoiceField(choices=TYPE_CHOICES, required=False, default='registration')


class LogoUploadSerializer(serializers.Serializer):
    ALLOWED_EXTENSIONS = ('.png', '.jpg', '.jpeg')

    logo = serializers.FileField()

    def validate_logo(self, value):
        name = (value.name or '').lower()
        if not name.endswith(self.ALLOWED_EXTENSIONS):
            raise serializers.ValidationError('Logo must be a PNG or JPEG image.')
        return value
