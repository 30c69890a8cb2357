from rest_framework.permissions import BasePermission

from .context import ANONYMOUS, context_from_request


class IsAuthenticatedContext(BasePermission):
    """Any resolved token type (admin, user, mobile)"""

    def has_permission(self, request, view):
        return context_from_request(request).kind != ANONYMOUS
