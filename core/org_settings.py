"""
Organization settings lookup: invoice header details, email toggles, admin contact.
"""
import logging
import os

from django.conf import settings
from django.core.files.storage import FileSystemStorage
from django.db import transaction

from .models import Organization, OrganizationSetting

logger = logging.getLogger(__name__)

DEFAULT_DETAILS = {
    'name': 'Default Organization',
    'address': 'Default Address',
    'phone': 'Default Phone',
    'email': 'Default Email',
}

# Email toggles default to on until a tenant switches them off.
DEFAULT_EMAIL_TOGGLES = {
    OrganizationSetting.KEY_EMAIL_ENABLED: 'true',
    OrganizationSetting.KEY_EMAIL_REGISTRATION: 'true',
    OrganizationSetting.KEY_EMAIL_PAYMENT_RECEIPT: 'true',
    OrganizationSetting.KEY_EMAIL_NEW_LEAD: 'true',
}

VALID_KEYS = {key for key, _ in OrganizationSetting.KEY_CHOICES}


def get_settings(organization):
    """All stored settings for an organization as {key: value}."""
    if organization is None:
        return {}
    org_id = getattr(organization, 'pk', organization)
    return dict(
        OrganizationSetting.objects.filter(organization_id=org_id).values_list('key', 'value')
    )


def get_setting(organization, key, default=None):
    value = get_settings(organization).get(key)
    return value if value not in (None, '') else default


@transaction.atomic
def update_settings(organization, values):
    """Upsert the given keys. Unknown keys raise ValueError."""
    unknown = set(values) - VALID_KEYS
    if unknown:
        raise ValueError(f"Unknown setting keys: {', '.join(sorted(unknown))}")
    for key, value in values.items():
        OrganizationSetting.objects.update_or_create(
            organization=organization,
            key=key,
            defaults={'value': '' if value is None else str(value)},
        )
    logger.info(f"[SETTINGS] Updated {len(values)} setting(s) for organization_id={organization.pk}")
    return get_settings(organization)


def get_organization_details(organization):
    """
    Flat record the invoice renderer consumes:
    {name, address, phone, email, website?, gstin?, logo?}
    """
    stored = get_settings(organization)
    details = {
        'name': stored.get(OrganizationSetting.KEY_NAME) or DEFAULT_DETAILS['name'],
        'address': stored.get(OrganizationSetting.KEY_ADDRESS) or DEFAULT_DETAILS['address'],
        'phone': stored.get(OrganizationSetting.KEY_PHONE) or DEFAULT_DETAILS['phone'],
        'email': stored.get(OrganizationSetting.KEY_EMAIL) or DEFAULT_DETAILS['email'],
    }
    for field, key in (
        ('website', OrganizationSetting.KEY_WEBSITE),
        ('gstin', OrganizationSetting.KEY_GSTIN),
        ('logo', OrganizationSetting.KEY_LOGO),
    ):
        if stored.get(key):
            details[field] = stored[key]
    return details


def is_notification_enabled(organization, key):
    """Global email switch AND the per-type switch must both be 'true'."""
    stored = get_settings(organization)

    def flag(k):
        return str(stored.get(k, DEFAULT_EMAIL_TOGGLES.get(k, 'false'))).lower() == 'true'

    return flag(OrganizationSetting.KEY_EMAIL_ENABLED) and flag(key)


def get_admin_email(organization):
    """admin_email setting, then organization_email, then the first active admin user."""
    stored = get_settings(organization)
    for key in (OrganizationSetting.KEY_ADMIN_EMAIL, OrganizationSetting.KEY_EMAIL):
        if stored.get(key):
            return stored[key]
    from accounts.models import User
    admin = (
        User.objects.filter(role=User.ROLE_ADMIN, is_active=True)
        .order_by('date_joined')
        .first()
    )
    return admin.email if admin else None


def get_from_address(organization):
    return get_setting(organization, OrganizationSetting.KEY_EMAIL_FROM, settings.DEFAULT_FROM_EMAIL)


def get_default_organization():
    """Tenant used by the public lead form. Created on first use."""
    slug = settings.DEFAULT_TENANT_SLUG
    organization, created = Organization.objects.get_or_create(
        slug=slug, defaults={'name': DEFAULT_DETAILS['name']}
    )
    if created:
        logger.info(f"[SETTINGS] Created default organization slug={slug}")
    return organization


def store_logo(organization, upload):
    """
    Save an uploaded logo under INVOICE_LOGO_ROOT and point organization_logo at it.
    The stored value is relative to INVOICE_LOGO_ROOT, which is how invoices resolve it.
    """
    storage = FileSystemStorage(location=settings.INVOICE_LOGO_ROOT)
    extension = os.path.splitext(upload.name)[1].lower()
    name = storage.save(f'logos/org-{organization.pk}-logo{extension}', upload)
    update_settings(organization, {OrganizationSetting.KEY_LOGO: name})
    logger.info(f"[SETTINGS] Stored logo {name!r} for organization_id={organization.pk}")
    return name
