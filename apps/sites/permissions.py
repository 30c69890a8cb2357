from rest_framework.permissions import BasePermission

from apps.authentication.context import ANONYMOUS, USER, context_from_request

from .access import get_site_access


def site_access_for(request):
    """Resolve site access once per request and cache it on the request"""
    access = getattr(request, "site_access", None)
    if access is None:
        access = get_site_access(context_from_request(request))
        request.site_access = access
    return access


class _SiteAccessPermission(BasePermission):
    message = "Forbidden: Insufficient permissions"

    def has_permission(self, request, view):
        context = context_from_request(request)
        if context.kind == ANONYMOUS:
            self.message = "Unauthorized: Authentication required"
            return False

        if context.kind == USER and not context.is_whitelisted:
            self.message = "Forbidden: Account not whitelisted. Contact an administrator."
            return False

        return self.check(site_access_for(request))

    def check(self, access):
        raise NotImplementedError


class HasSiteReadAccess(_SiteAccessPermission):
    message = "Forbidden: Insufficient permissions to read site data"

    def check(self, access):
        return access.can_read


class HasSiteWriteAccess(_SiteAccessPermission):
    message = "Forbidden: Insufficient permissions to modify site data"

    def check(self, access):
        return access.can_write
