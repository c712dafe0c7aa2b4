"""
Contact Management Permissions

Access control for the operator endpoints.
"""
from rest_framework import permissions


class IsAdminOrStaff(permissions.BasePermission):
    """
    Permission for staff users to read and manage contact messages.
    """

    message = 'Only staff users can manage contact messages.'

    def has_permission(self, request, view):
        """Check if user is authenticated and is staff."""
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_staff
        )
