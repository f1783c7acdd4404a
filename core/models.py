"""
Core models: Organization (tenant) and its key/value settings bag.
"""
from django.db import models


class Organization(models.Model):
    """
    Organization / institute. Every student, lead, batch and payment belongs to one.
    """
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organizations'
        verbose_name = 'Organization'
        verbose_name_plural = 'Organizations'
        ordering = ['name']

    def __str__(self):
        return self.name


class OrganizationSetting(models.Model):
    """
    One setting value per (organization, key). Invoice header, sender address
    and email toggles are read from here.
    """
    KEY_NAME = 'organization_name'
    KEY_ADDRESS = 'organization_address'
    KEY_PHONE = 'organization_phone'
    KEY_EMAIL = 'organization_email'
    KEY_WEBSITE = 'organization_website'
    KEY_GSTIN = 'organization_gstin'
    KEY_LOGO = 'organization_logo'
    KEY_EMAIL_ENABLED = 'email_notifications_enabled'
    KEY_EMAIL_REGISTRATION = 'email_student_registration'
    KEY_EMAIL_PAYMENT_RECEIPT = 'email_payment_receipt'
    KEY_EMAIL_NEW_LEAD = 'email_new_lead_notification'
    KEY_EMAIL_FROM = 'email_from_address'
    KEY_ADMIN_EMAIL = 'admin_email'

    KEY_CHOICES = [
        (KEY_NAME, 'Organization name'),
        (KEY_ADDRESS, 'Address'),
        (KEY_PHONE, 'Phone'),
        (KEY_EMAIL, 'Email'),
        (KEY_WEBSITE, 'Website'),
        (KEY_GSTIN, 'GSTIN'),
        (KEY_LOGO, 'Logo path'),
        (KEY_EMAIL_ENABLED, 'Email notifications enabled'),
        (KEY_EMAIL_REGISTRATION, 'Send registration confirmation'),
        (KEY_EMAIL_PAYMENT_RECEIPT, 'Send payment receipt'),
        (KEY_EMAIL_NEW_LEAD, 'Send new lead notification'),
        (KEY_EMAIL_FROM, 'Sender address'),
        (KEY_ADMIN_EMAIL, 'Admin email'),
    ]

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name='settings',
        db_column='organization_id',
    )
    key = models.CharField(max_length=64, choices=KEY_CHOICES)
    value = models.TextField(blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'organization_settings'
        verbose_name = 'Organization Setting'
        verbose_name_plural = 'Organization Settings'
        ordering = ['organization', 'key']
        unique_together = [['organization', 'key']]

    def __str__(self):
        return f"{self.organization_id}:{self.key}"
