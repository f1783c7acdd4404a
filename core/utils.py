"""
Core utilities: organization scoping and query-string parsing.
"""
from django.conf import settings


def user_organization(user):
    return getattr(user, 'organization', None)


def belongs_to_user_organization(obj, user, org_attr='organization'):
    """
    Check if object belongs to user's organization.
    True in single-tenant mode, when the user has no org, or when the orgs match.
    """
    if getattr(settings, 'SINGLE_TENANT', True):
        return True
    user_org_id = getattr(user, 'organization_id', None)
    if user_org_id is None:
        return True
    obj_org_id = getattr(obj, f'{org_attr}_id', None)
    if obj_org_id is None:
        return True
    return obj_org_id == user_org_id


def filter_by_organization(queryset, user, org_field='organization'):
    """
    Filter queryset by user's organization.
    Single-tenant mode (SINGLE_TENANT=True): return all, no filter.
    When user has no org: return all.
    """
    if getattr(settings, 'SINGLE_TENANT', True):
        return queryset
    org_id = getattr(user, 'organization_id', None)
    if org_id is None:
        return queryset
    return queryset.filter(**{f'{org_field}_id': org_id})


def parse_bool(value):
    """Query-string booleans: 'true', '1', 'yes' (any case) are True."""
    if value is None:
        return None
    return str(value).strip().lower() in ('true', '1', 'yes')
