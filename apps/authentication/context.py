"""
Resolved caller identity, one variant per token type

The authentication class builds exactly one of these per request and
stores it on request.auth. Services only ever look at `kind` and the
variant's fields; they never see the raw bearer token.
"""

from dataclasses import dataclass
from typing import Optional, Union

ADMIN = "admin"
USER = "user"
MOBILE = "mobile"
ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class AdminContext:
    kind: str = ADMIN

    @property
    def user_id(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class UserContext:
    id: int
    email: str
    privilege: int
    program_id: Optional[int] = None
    is_whitelisted: bool = False
    kind: str = USER

    @property
    def user_id(self) -> Optional[int]:
        return self.id


@dataclass(frozen=True)
class MobileContext:
    kind: str = MOBILE

    @property
    def user_id(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class AnonymousContext:
    kind: str = ANONYMOUS

    @property
    def user_id(self) -> Optional[int]:
        return None


AuthContext = Union[AdminContext, UserContext, MobileContext, AnonymousContext]

ANONYMOUS_CONTEXT = AnonymousContext()


def context_from_request(request) -> AuthContext:
    """Return the context attached by FlexibleTokenAuthentication"""
    auth = getattr(request, "auth", None)
    if auth is None:
        return ANONYMOUS_CONTEXT
    return auth
