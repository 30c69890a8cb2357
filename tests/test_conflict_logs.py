"""Tests for the conflict log reader and GET /api/v1/sessions/conflict-logs/"""

from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.exceptions import AuthorizationError
from apps.sites.access import SiteAccess
from apps.surveillance.models import SessionConflictResolution
from apps.surveillance.services import ConflictLogService

from .conftest import make_session, utc

URL = "/api/v1/sessions/conflict-logs/"


def make_resolution(site, session_ids, month=3, year=2024, minutes_ago=0):
    return SessionConflictResolution.objects.create(
        site=site,
        session_ids=session_ids,
        month=month,
        year=year,
        resolved_at=timezone.now() - timedelta(minutes=minutes_ago),
        before_data={"sessions": [], "surveillanceForms": []},
        after_data={"surveillanceForm": None},
    )


@pytest.fixture
def logs(site, other_site):
    """Three resolutions, newest first in the returned list"""
    return [
        make_resolution(site, [1, 2], month=4, minutes_ago=1),
        make_resolution(other_site, [3, 4], month=3, minutes_ago=2),
        make_resolution(site, [2, 5, 6], month=3, year=2023, minutes_ago=3),
    ]


class TestConflictLogService:
    def test_ordered_most_recent_first(self, logs):
        assert list(ConflictLogService.get_conflict_logs()) == logs

    def test_filters_combine(self, site, logs):
        result = ConflictLogService.get_conflict_logs(site_id=site.id, month=3, year=2023)
        assert list(result) == [logs[2]]

    def test_session_membership(self, logs):
        assert list(ConflictLogService.get_conflict_logs(session_id=2)) == [logs[0], logs[2]]
        assert list(ConflictLogService.get_conflict_logs(session_id=5)) == [logs[2]]
        assert list(ConflictLogService.get_conflict_logs(session_id=7)) == []

    def test_session_membership_is_not_substring_match(self, site):
        make_resolution(site, [12, 21])
        assert list(ConflictLogService.get_conflict_logs(session_id=1)) == []
        assert list(ConflictLogService.get_conflict_logs(session_id=2)) == []

    def test_restricted_caller_sees_only_own_sites(self, site, logs):
        access = SiteAccess(can_read=True, can_write=False, user_sites=frozenset({site.id}))
        assert list(ConflictLogService.get_conflict_logs(site_access=access)) == [logs[0], logs[2]]

    def test_restricted_caller_asking_for_other_site(self, site, other_site, logs):
        access = SiteAccess(can_read=True, can_write=False, user_sites=frozenset({site.id}))
        with pytest.raises(AuthorizationError):
            ConflictLogService.get_conflict_logs(site_access=access, site_id=other_site.id)

    def test_ties_broken_by_id(self, site):
        now = timezone.now()
        older = SessionConflictResolution.objects.create(
            site=site, session_ids=[1, 2], month=3, year=2024, resolved_at=now, before_data={}, after_data={}
        )
        newer = SessionConflictResolution.objects.create(
            site=site, session_ids=[3, 4], month=3, year=2024, resolved_at=now, before_data={}, after_data={}
        )
        assert list(ConflictLogService.get_conflict_logs()) == [newer, older]


class TestConflictLogsEndpoint:
    def test_requires_auth(self, client, logs):
        resp = client.get(URL)
        assert resp.status_code == 401

    def test_response_shape(self, admin_client, site):
        a = make_session(site, collection_date=utc(2024, 3, 5))
        b = make_session(site, collection_date=utc(2024, 3, 6))
        admin_client.post(
            "/api/v1/sessions/resolve-conflict/",
            {"sessionIds": [a.id, b.id], "resolvedData": {"notes": "merged"}},
            format="json",
        )

        resp = admin_client.get(URL)

        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"] == {"page": 1, "size": 10, "totalPages": 1, "totalItems": 1}
        log = body["logs"][0]
        assert set(log) == {
            "id",
            "resolvedByUserId",
            "resolvedAt",
            "sessionIds",
            "siteId",
            "month",
            "year",
            "beforeData",
            "afterData",
        }
        assert log["sessionIds"] == [a.id, b.id]
        assert log["siteId"] == site.id
        assert (log["month"], log["year"]) == (3, 2024)
        assert isinstance(log["resolvedAt"], int)
        assert log["afterData"] == {"notes": "merged", "surveillanceForm": None}
        assert len(log["beforeData"]["sessions"]) == 2

    def test_filters_from_query(self, mobile_client, site, logs):
        resp = mobile_client.get(URL, {"siteId": site.id, "month": 3})
        assert [log["id"] for log in resp.json()["logs"]] == [logs[2].id]

        resp = mobile_client.get(URL, {"sessionId": 3})
        assert [log["id"] for log in resp.json()["logs"]] == [logs[1].id]

    def test_pagination(self, admin_client, logs):
        resp = admin_client.get(URL, {"page": 2, "size": 2})

        body = resp.json()
        assert [log["id"] for log in body["logs"]] == [logs[2].id]
        assert body["pagination"] == {"page": 2, "size": 2, "totalPages": 2, "totalItems": 3}

    def test_page_past_end_is_empty(self, admin_client, logs):
        resp = admin_client.get(URL, {"page": 9})

        assert resp.status_code == 200
        assert resp.json()["logs"] == []
        assert resp.json()["pagination"]["totalItems"] == 3

    @pytest.mark.parametrize("params", [{"month": 13}, {"month": 0}, {"page": 0}, {"size": 101}, {"siteId": "abc"}])
    def test_bad_query_is_rejected(self, admin_client, logs, params):
        resp = admin_client.get(URL, params)
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_site_writer_scoped_to_assigned_site(self, site_writer_client, site, other_site, logs):
        resp = site_writer_client.get(URL)
        assert [log["id"] for log in resp.json()["logs"]] == [logs[0].id, logs[2].id]

        resp = site_writer_client.get(URL, {"siteId": other_site.id})
        assert resp.status_code == 403

    def test_program_reader_sees_program_sites(self, program_reader_client, logs):
        resp = program_reader_client.get(URL)
        assert resp.json()["pagination"]["totalItems"] == 3
