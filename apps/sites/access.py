import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from apps.authentication.context import ADMIN, MOBILE, USER, AuthContext
from apps.authentication.models import User

from .models import Site, SiteUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiteAccess:
    """
    What a caller may do, and where

    user_sites is None for unrestricted callers (admin and mobile tokens);
    otherwise it is the exact set of site ids the caller may touch.
    """

    can_read: bool
    can_write: bool
    user_sites: Optional[FrozenSet[int]] = None

    @property
    def is_global(self) -> bool:
        return self.user_sites is None

    def allows(self, site_id: int) -> bool:
        return self.is_global or site_id in self.user_sites


NO_ACCESS = SiteAccess(can_read=False, can_write=False, user_sites=frozenset())
FULL_ACCESS = SiteAccess(can_read=True, can_write=True, user_sites=None)


def get_site_access(context: AuthContext) -> SiteAccess:
    """
    Compute site access from a resolved auth context

    Site lists are always scoped to the user's program; a user without a
    program has no access at all.
    """
    if context.kind in (ADMIN, MOBILE):
        return FULL_ACCESS

    if context.kind != USER:
        return NO_ACCESS

    if context.program_id is None:
        return NO_ACCESS

    privilege = context.privilege

    if privilege >= User.PRIVILEGE_PROGRAM_ADMIN:
        return SiteAccess(can_read=True, can_write=True, user_sites=_program_site_ids(context.program_id))

    if privilege == User.PRIVILEGE_ASSIGNED_WRITE:
        return SiteAccess(can_read=True, can_write=True, user_sites=_assigned_site_ids(context.id, context.program_id))

    if privilege == User.PRIVILEGE_PROGRAM_READ:
        return SiteAccess(can_read=True, can_write=False, user_sites=_program_site_ids(context.program_id))

    assigned = _assigned_site_ids(context.id, context.program_id)
    return SiteAccess(can_read=bool(assigned), can_write=False, user_sites=assigned)


def _program_site_ids(program_id: int) -> FrozenSet[int]:
    return frozenset(Site.objects.filter(program_id=program_id).values_list("id", flat=True))


def _assigned_site_ids(user_id: int, program_id: int) -> FrozenSet[int]:
    return frozenset(
        SiteUser.objects.filter(user_id=user_id, site__program_id=program_id).values_list("site_id", flat=True)
    )
