import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from django.contrib.auth import authenticate

from apps.core.exceptions import ValidationError
from apps.sites.permissions import site_access_for

from .context import context_from_request
from .permissions import IsAuthenticatedContext

logger = logging.getLogger(__name__)


@api_view(["POST"])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login endpoint for JWT authentication
    returns: JWT refresh and access tokens
    """
    email = (request.data.get("email") or "").strip()
    password = request.data.get("password")

    if not email or not password:
        return Response({"error": "Email and password are required"}, status=status.HTTP_400_BAD_REQUEST)

    user = authenticate(request, email=email, password=password)

    if not user:
        logger.warning(f"Failed login for {email}")
        return Response({"error": "Invalid email or password"}, status=status.HTTP_401_UNAUTHORIZED)

    refresh = RefreshToken.for_user(user)
    return Response(
        {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "user": {
                "id": user.id,
                "email": user.email,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "privilege": user.privilege,
                "programId": user.program_id,
                "isWhitelisted": user.is_whitelisted,
            },
        }
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def logout_view(request):
    refresh_token = request.data.get("refresh") or request.COOKIES.get("refresh_token")

    if refresh_token is None:
        return Response({"error": "No refresh token provided."}, status=status.HTTP_400_BAD_REQUEST)

    try:
        token = RefreshToken(refresh_token)
        token.blacklist()

    except TokenError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    response = Response(status=204)
    response.delete_cookie("refresh_token")

    return response


@api_view(["GET"])
@permission_classes([IsAuthenticatedContext])
def permissions_view(request):
    """
    Site permissions of the caller

    GET /api/v1/auth/permissions/?siteId=3

    Returns:
    {
        "programId": 1,
        "viewSiteMetadata": true,
        "writeSiteMetadata": false,
        "canAccessSites": [3]
    }

    canAccessSites is null for unrestricted callers (admin and mobile tokens).
    """
    site_id = request.query_params.get("siteId")
    if site_id is not None:
        try:
            site_id = int(site_id)
        except ValueError:
            raise ValidationError("siteId must be an integer")

    context = context_from_request(request)
    access = site_access_for(request)

    can_read, can_write = access.can_read, access.can_write
    sites = None if access.is_global else sorted(access.user_sites)

    if site_id is not None:
        allowed = access.allows(site_id)
        can_read, can_write = can_read and allowed, can_write and allowed
        sites = [site_id] if allowed else []

    return Response(
        {
            "programId": getattr(context, "program_id", None),
            "viewSiteMetadata": can_read,
            "writeSiteMetadata": can_write,
            "canAccessSites": sites,
        }
    )
