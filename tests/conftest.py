"""
Shared fixtures for the test suite

Every test that touches the database asks for `db` through one of the
model fixtures below. API clients authenticate with the static tokens
from config.settings_test or with a freshly minted user JWT.
"""

import itertools
from datetime import datetime, timezone as dt_timezone

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.authentication.models import User, UserWhitelist
from apps.sites.models import Program, Site, SiteUser
from apps.surveillance.models import Session, Specimen, SpecimenImage, SurveillanceForm

ADMIN_TOKEN = "test-admin-token"
MOBILE_TOKEN = "test-mobile-token"

_frontend_ids = itertools.count(1)


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=dt_timezone.utc)


# ---------------------------------------------------------------------------
# Sites
# ---------------------------------------------------------------------------


@pytest.fixture
def program(db):
    return Program.objects.create(name="Uganda Vector Control", country="Uganda")


@pytest.fixture
def other_program(db):
    return Program.objects.create(name="Kenya Vector Control", country="Kenya")


@pytest.fixture
def site(program):
    return Site.objects.create(program=program, district="Kampala", village_name="Kisenyi", house_number="1")


@pytest.fixture
def other_site(program):
    return Site.objects.create(program=program, district="Kampala", village_name="Kisenyi", house_number="2")


# ---------------------------------------------------------------------------
# Sessions and their children
# ---------------------------------------------------------------------------


def make_session(site, collection_date=None, created_at=None, type=Session.TYPE_SURVEILLANCE, **fields):
    return Session.objects.create(
        frontend_id=f"frontend-{next(_frontend_ids)}",
        site=site,
        collection_date=collection_date,
        created_at=created_at,
        type=type,
        **fields,
    )


def make_form(session, **fields):
    return SurveillanceForm.objects.create(session=session, **fields)


def make_specimens(session, count, abdomen_status=None):
    """Create `count` specimens whose thumbnail carries abdomen_status"""
    specimens = []
    for _ in range(count):
        specimen = Specimen.objects.create(session=session, specimen_id=f"spec-{next(_frontend_ids)}")
        image = SpecimenImage.objects.create(specimen=specimen, abdomen_status=abdomen_status)
        specimen.thumbnail_image = image
        specimen.save(update_fields=["thumbnail_image"])
        specimens.append(specimen)
    return specimens


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def make_user(email, privilege, program=None, whitelisted=True, sites=(), password="correct-horse-battery"):
    user = User.objects.create_user(email=email, password=password, privilege=privilege, program=program)
    if whitelisted:
        UserWhitelist.objects.create(email=email)
    for s in sites:
        SiteUser.objects.create(site=s, user=user)
    return user


@pytest.fixture
def program_admin(program):
    return make_user("admin@example.org", User.PRIVILEGE_PROGRAM_ADMIN, program=program)


@pytest.fixture
def program_reader(program):
    return make_user("reader@example.org", User.PRIVILEGE_PROGRAM_READ, program=program)


@pytest.fixture
def site_writer(program, site):
    return make_user("writer@example.org", User.PRIVILEGE_ASSIGNED_WRITE, program=program, sites=[site])


@pytest.fixture
def unlisted_user(program):
    return make_user("stranger@example.org", User.PRIVILEGE_PROGRAM_ADMIN, program=program, whitelisted=False)


# ---------------------------------------------------------------------------
# API clients
# ---------------------------------------------------------------------------


@pytest.fixture
def client():
    return APIClient()


def _bearer_client(token):
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return c


def jwt_client(user):
    return _bearer_client(str(RefreshToken.for_user(user).access_token))


@pytest.fixture
def admin_client(db):
    return _bearer_client(ADMIN_TOKEN)


@pytest.fixture
def mobile_client(db):
    return _bearer_client(MOBILE_TOKEN)


@pytest.fixture
def program_admin_client(program_admin):
    return jwt_client(program_admin)


@pytest.fixture
def program_reader_client(program_reader):
    return jwt_client(program_reader)


@pytest.fixture
def site_writer_client(site_writer):
    return jwt_client(site_writer)
