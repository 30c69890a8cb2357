import logging

from django.conf import settings
from django.contrib.auth.models import AnonymousUser
from django.utils.crypto import constant_time_compare
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from .context import AdminContext, MobileContext, UserContext

logger = logging.getLogger(__name__)


class FlexibleTokenAuthentication(BaseAuthentication):
    """
    Resolve `Authorization: Bearer <token>` into an AuthContext

    Checked in order: admin token, user JWT, mobile token.
    Anything else leaves the request anonymous (request.auth is None),
    so endpoints decide for themselves whether that is a 401.
    """

    keyword = b"bearer"

    def __init__(self):
        self.jwt_authentication = JWTAuthentication()

    def authenticate(self, request):
        token = self._get_token(request)
        if not token:
            return None

        if self._matches(token, settings.ADMIN_AUTH_TOKEN):
            return AnonymousUser(), AdminContext()

        user_context = self._authenticate_jwt(token)
        if user_context is not None:
            return user_context

        if self._matches(token, settings.MOBILE_AUTH_TOKEN):
            return AnonymousUser(), MobileContext()

        logger.info("Bearer token did not match any known token type")
        return None

    def authenticate_header(self, request):
        return 'Bearer realm="api"'

    def _get_token(self, request):
        parts = get_authorization_header(request).split()
        if len(parts) != 2 or parts[0].lower() != self.keyword:
            return None
        try:
            return parts[1].decode()
        except UnicodeError:
            return None

    @staticmethod
    def _matches(token: str, expected: str) -> bool:
        return bool(expected) and constant_time_compare(token, expected)

    def _authenticate_jwt(self, token: str):
        try:
            validated_token = self.jwt_authentication.get_validated_token(token.encode())
            user = self.jwt_authentication.get_user(validated_token)
        except AuthenticationFailed:
            return None

        context = UserContext(
            id=user.id,
            email=user.email,
            privilege=user.privilege,
            program_id=user.program_id,
            is_whitelisted=user.is_whitelisted,
        )
        return user, context
