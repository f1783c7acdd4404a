"""
Custom permissions for role-based access
"""
from rest_framework import permissions


def _has_role(request, *roles):
    user = request.user
    return bool(user and user.is_authenticated and user.role in roles)


class IsManager(permissions.BasePermission):
    """Admin or manager: enrollment, payments, leads, settings"""

    def has_permission(self, request, view):
        return _has_role(request, 'admin', 'manager')


class IsStaffMember(permissions.BasePermission):
    """Any non-student role"""

    def has_permission(self, request, view):
        return _has_role(request, 'admin', 'manager', 'trainer')
