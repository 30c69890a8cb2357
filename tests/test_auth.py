"""Tests for bearer token dispatch, site access rules and the auth endpoints"""

import pytest
from rest_framework.test import APIRequestFactory
from rest_framework_simplejwt.tokens import RefreshToken

from apps.authentication.authentication import FlexibleTokenAuthentication
from apps.authentication.context import ADMIN, MOBILE, USER, AdminContext, AnonymousContext, MobileContext, UserContext
from apps.authentication.models import User
from apps.sites.access import FULL_ACCESS, NO_ACCESS, get_site_access
from apps.sites.models import Site, SiteUser

from .conftest import ADMIN_TOKEN, MOBILE_TOKEN, _bearer_client, jwt_client, make_user

PERMISSIONS_URL = "/api/v1/auth/permissions/"


def authenticate(header):
    request = APIRequestFactory().get("/", HTTP_AUTHORIZATION=header)
    return FlexibleTokenAuthentication().authenticate(request)


def user_context(user):
    return UserContext(
        id=user.id,
        email=user.email,
        privilege=user.privilege,
        program_id=user.program_id,
        is_whitelisted=user.is_whitelisted,
    )


class TestTokenDispatch:
    def test_admin_token(self, db):
        _, context = authenticate(f"Bearer {ADMIN_TOKEN}")
        assert context.kind == ADMIN

    def test_mobile_token(self, db):
        _, context = authenticate(f"Bearer {MOBILE_TOKEN}")
        assert context.kind == MOBILE

    def test_user_jwt(self, program_admin):
        user, context = authenticate(f"Bearer {RefreshToken.for_user(program_admin).access_token}")

        assert user == program_admin
        assert context == UserContext(
            id=program_admin.id,
            email=program_admin.email,
            privilege=User.PRIVILEGE_PROGRAM_ADMIN,
            program_id=program_admin.program_id,
            is_whitelisted=True,
        )
        assert context.kind == USER
        assert context.user_id == program_admin.id

    @pytest.mark.parametrize("header", ["", "Bearer", "Bearer not-a-token", "Token test-admin-token", "Bearer a b"])
    def test_unknown_tokens_stay_anonymous(self, db, header):
        assert authenticate(header) is None

    def test_static_tokens_have_no_user_id(self):
        assert AdminContext().user_id is None
        assert MobileContext().user_id is None
        assert AnonymousContext().user_id is None


class TestSiteAccess:
    def test_static_tokens_have_full_access(self):
        assert get_site_access(AdminContext()) == FULL_ACCESS
        assert get_site_access(MobileContext()) == FULL_ACCESS

    def test_anonymous_has_no_access(self):
        assert get_site_access(AnonymousContext()) == NO_ACCESS

    def test_user_without_program_has_no_access(self, db):
        user = make_user("orphan@example.org", User.PRIVILEGE_PROGRAM_ADMIN)
        assert get_site_access(user_context(user)) == NO_ACCESS

    def test_program_admin_writes_all_program_sites(self, program_admin, site, other_site, other_program):
        foreign = Site.objects.create(program=other_program, district="Nairobi")

        access = get_site_access(user_context(program_admin))

        assert (access.can_read, access.can_write) == (True, True)
        assert access.user_sites == frozenset({site.id, other_site.id})
        assert not access.allows(foreign.id)

    def test_program_reader_reads_all_program_sites(self, program_reader, site, other_site):
        access = get_site_access(user_context(program_reader))

        assert (access.can_read, access.can_write) == (True, False)
        assert access.user_sites == frozenset({site.id, other_site.id})

    def test_assigned_writer_limited_to_assigned_sites(self, site_writer, site, other_site):
        access = get_site_access(user_context(site_writer))

        assert (access.can_read, access.can_write) == (True, True)
        assert access.user_sites == frozenset({site.id})
        assert not access.allows(other_site.id)

    def test_assigned_reader_needs_an_assignment(self, program, site):
        user = make_user("viewer@example.org", User.PRIVILEGE_ASSIGNED_READ, program=program)
        assert get_site_access(user_context(user)).can_read is False

        SiteUser.objects.create(site=site, user=user)
        access = get_site_access(user_context(user))
        assert (access.can_read, access.can_write) == (True, False)
        assert access.user_sites == frozenset({site.id})

    def test_assignments_outside_program_are_ignored(self, program, other_program, site):
        foreign = Site.objects.create(program=other_program, district="Nairobi")
        user = make_user("viewer@example.org", User.PRIVILEGE_ASSIGNED_WRITE, program=program, sites=[site, foreign])

        assert get_site_access(user_context(user)).user_sites == frozenset({site.id})


class TestPermissionsEndpoint:
    def test_requires_auth(self, client):
        assert client.get(PERMISSIONS_URL).status_code == 401

    def test_invalid_token_is_unauthorized(self, db):
        assert _bearer_client("garbage").get(PERMISSIONS_URL).status_code == 401

    def test_admin_token(self, admin_client):
        resp = admin_client.get(PERMISSIONS_URL)

        assert resp.status_code == 200
        assert resp.json() == {
            "programId": None,
            "viewSiteMetadata": True,
            "writeSiteMetadata": True,
            "canAccessSites": None,
        }

    def test_site_writer(self, site_writer_client, program, site):
        resp = site_writer_client.get(PERMISSIONS_URL)

        assert resp.json() == {
            "programId": program.id,
            "viewSiteMetadata": True,
            "writeSiteMetadata": True,
            "canAccessSites": [site.id],
        }

    def test_site_filter(self, site_writer_client, site, other_site):
        resp = site_writer_client.get(PERMISSIONS_URL, {"siteId": other_site.id})

        body = resp.json()
        assert (body["viewSiteMetadata"], body["writeSiteMetadata"], body["canAccessSites"]) == (False, False, [])

        resp = site_writer_client.get(PERMISSIONS_URL, {"siteId": site.id})
        assert resp.json()["canAccessSites"] == [site.id]

    def test_bad_site_filter(self, admin_client):
        assert admin_client.get(PERMISSIONS_URL, {"siteId": "x"}).status_code == 400


class TestLoginLogout:
    def test_login_returns_tokens(self, client, program_admin):
        resp = client.post(
            "/api/v1/auth/login/", {"email": program_admin.email, "password": "correct-horse-battery"}, format="json"
        )

        assert resp.status_code == 200
        body = resp.json()
        assert {"access", "refresh", "user"} <= set(body)
        assert body["user"]["privilege"] == User.PRIVILEGE_PROGRAM_ADMIN
        assert body["user"]["programId"] == program_admin.program_id

    def test_login_wrong_password(self, client, program_admin):
        resp = client.post("/api/v1/auth/login/", {"email": program_admin.email, "password": "nope"}, format="json")
        assert resp.status_code == 401

    def test_login_missing_fields(self, client, db):
        assert client.post("/api/v1/auth/login/", {}, format="json").status_code == 400

    def test_logout_blacklists_refresh_token(self, client, program_admin):
        tokens = client.post(
            "/api/v1/auth/login/", {"email": program_admin.email, "password": "correct-horse-battery"}, format="json"
        ).json()

        resp = jwt_client(program_admin).post("/api/v1/auth/logout/", {"refresh": tokens["refresh"]}, format="json")
        assert resp.status_code == 204

        resp = client.post("/api/v1/auth/refresh/", {"refresh": tokens["refresh"]}, format="json")
        assert resp.status_code == 401

    def test_logout_without_token(self, program_admin_client):
        assert program_admin_client.post("/api/v1/auth/logout/", {}, format="json").status_code == 400
