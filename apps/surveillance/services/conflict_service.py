import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.core.exceptions import (
    AuthorizationError,
    ConflictResolutionFailedError,
    DataIntegrityError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from apps.core.timestamps import from_epoch_ms, to_epoch_ms
from apps.sites.models import Site
from apps.surveillance.models import Session, SessionConflictResolution, SurveillanceForm

logger = logging.getLogger(__name__)

# request key -> model field
SESSION_FIELDS = {
    "collectorTitle": "collector_title",
    "collectorName": "collector_name",
    "collectionDate": "collection_date",
    "collectionMethod": "collection_method",
    "specimenCondition": "specimen_condition",
    "createdAt": "created_at",
    "completedAt": "completed_at",
    "notes": "notes",
    "latitude": "latitude",
    "longitude": "longitude",
    "type": "type",
    "collectorLastTrainedOn": "collector_last_trained_on",
    "hardwareId": "hardware_id",
    "totalSpecimens": "total_specimens",
}

# sent and snapshotted as epoch milliseconds
SESSION_TIMESTAMP_FIELDS = {"collectionDate", "createdAt", "completedAt", "collectorLastTrainedOn"}

SURVEILLANCE_FORM_FIELDS = {
    "numPeopleSleptInHouse": "num_people_slept_in_house",
    "wasIrsConducted": "was_irs_conducted",
    "monthsSinceIrs": "months_since_irs",
    "numLlinsAvailable": "num_llins_available",
    "llinType": "llin_type",
    "llinBrand": "llin_brand",
    "numPeopleSleptUnderLlin": "num_people_slept_under_llin",
}


class ConflictResolutionService:
    """
    Merge sessions that record the same house visit

    Sessions are never deleted: every session in the group receives the same
    resolved values, and one append-only SessionConflictResolution row keeps
    the before/after snapshot.
    """

    @staticmethod
    def resolve_conflict(
        session_ids: list,
        resolved_data: dict,
        resolved_surveillance_form: dict = None,  # type: ignore
        site_access=None,
        user_id: int = None,  # type: ignore
    ) -> dict:
        """
        Resolve a conflict between sessions of one site and one month

        Args:
            session_ids: ids of the sessions to merge (at least 2, no duplicates)
            resolved_data: session fields to overwrite, keyed as in the API;
                fields that are absent keep each session's own value
            resolved_surveillance_form: form fields to overwrite on every
                existing form of the group, or None to leave forms alone
            site_access: caller's SiteAccess; None or a global access skips
                the site check
            user_id: resolving user, when authenticated as a user

        Returns:
            dict with resolution_id and updated_session_count

        Raises:
            ValidationError: fewer than 2 ids, duplicates, mixed sites or months
            NotFoundError: some sessions do not exist
            AuthorizationError: site is outside the caller's sites
            DataIntegrityError: a session has no date to bucket on
            ConflictResolutionFailedError: the write phase failed and was rolled back
        """
        ConflictResolutionService._validate_session_ids(session_ids)
        logger.info(f"Resolving conflict between sessions {session_ids} (user {user_id})")

        with transaction.atomic():
            # row locks are taken in id order; the site lock below serializes
            # resolutions of the same site
            sessions = list(Session.objects.select_for_update().filter(id__in=session_ids).order_by("id"))

            site_id, month, year = ConflictResolutionService._validate_sessions(session_ids, sessions)

            if site_access is not None and not site_access.allows(site_id):
                logger.warning(f"User {user_id} denied conflict resolution on site {site_id}")
                raise AuthorizationError("Forbidden: You do not have access to resolve conflicts for this site")

            try:
                Site.objects.select_for_update().only("id").get(pk=site_id)

                forms = list(SurveillanceForm.objects.select_for_update().filter(session_id__in=session_ids))
                before_data = ConflictResolutionService._snapshot(session_ids, sessions, forms)

                ConflictResolutionService._apply_session_update(session_ids, resolved_data)
                if resolved_surveillance_form is not None:
                    ConflictResolutionService._apply_form_update(session_ids, resolved_surveillance_form)

                resolution = SessionConflictResolution.objects.create(
                    resolved_by_id=user_id,
                    session_ids=list(session_ids),
                    site_id=site_id,
                    month=month,
                    year=year,
                    before_data=before_data,
                    after_data={
                        **resolved_data,
                        "surveillanceForm": resolved_surveillance_form,
                    },
                )
            except ServiceError:
                raise
            except Exception as e:
                logger.error(f"Conflict resolution for sessions {session_ids} rolled back: {str(e)}", exc_info=True)
                raise ConflictResolutionFailedError("Failed to resolve conflict; no changes were applied") from e

        logger.info(f"Created conflict resolution {resolution.id} for site {site_id} ({month}/{year}), {len(sessions)} sessions")

        return {
            "resolution_id": resolution.id,
            "updated_session_count": len(sessions),
        }

    @staticmethod
    def _validate_session_ids(session_ids: list):
        if not session_ids or len(session_ids) < 2:
            raise ValidationError("At least 2 session IDs are required")

        if len(set(session_ids)) != len(session_ids):
            raise ValidationError("Session IDs must not contain duplicates")

    @staticmethod
    def _validate_sessions(session_ids: list, sessions: list) -> tuple:
        """Check existence, shared site and shared month; return (site_id, month, year)"""
        if len(sessions) != len(session_ids):
            found_ids = {s.id for s in sessions}
            missing_ids = [sid for sid in session_ids if sid not in found_ids]
            logger.warning(f"Conflict resolution references missing sessions {missing_ids}")
            raise NotFoundError(f"Sessions not found: {', '.join(str(i) for i in missing_ids)}", missing_ids=missing_ids)

        site_ids = {s.site_id for s in sessions}
        if len(site_ids) > 1:
            logger.warning(f"Conflict resolution across sites {sorted(site_ids)} rejected")
            raise ValidationError("All sessions must be under the same site")

        buckets = {ConflictResolutionService.month_bucket(s) for s in sessions}
        if len(buckets) > 1:
            logger.warning(f"Conflict resolution across months {sorted(buckets)} rejected")
            raise ValidationError("All sessions must be in the same month and year")

        month, year = buckets.pop()
        return site_ids.pop(), month, year

    @staticmethod
    def month_bucket(session: Session) -> tuple:
        """(month, year) of the session's collection date, or creation date if absent"""
        date = session.bucket_date
        if date is None:
            logger.error(f"Session {session.id} has neither collection_date nor created_at")
            raise DataIntegrityError(f"Session {session.id} has no valid date")

        local = timezone.localtime(date)
        return local.month, local.year

    @staticmethod
    def _snapshot(session_ids: list, sessions: list, forms: list) -> dict:
        by_id = {s.id: s for s in sessions}
        forms_by_session = {f.session_id: f for f in forms}

        return {
            "sessions": [ConflictResolutionService._serialize_session(by_id[sid]) for sid in session_ids],
            # sessions without a form are simply absent
            "surveillanceForms": [
                ConflictResolutionService._serialize_form(forms_by_session[sid]) for sid in session_ids if sid in forms_by_session
            ],
        }

    @staticmethod
    def _serialize_session(session: Session) -> dict:
        data = {"sessionId": session.id, "frontendId": session.frontend_id}
        for key, field in SESSION_FIELDS.items():
            value = getattr(session, field)
            data[key] = to_epoch_ms(value) if key in SESSION_TIMESTAMP_FIELDS else value
        return data

    @staticmethod
    def _serialize_form(form: SurveillanceForm) -> dict:
        data = {"sessionId": form.session_id}
        for key, field in SURVEILLANCE_FORM_FIELDS.items():
            data[key] = getattr(form, field)
        return data

    @staticmethod
    def _apply_session_update(session_ids: list, resolved_data: dict):
        update_data = {}
        for key, field in SESSION_FIELDS.items():
            if key not in resolved_data:
                continue
            value = resolved_data[key]
            update_data[field] = from_epoch_ms(value) if key in SESSION_TIMESTAMP_FIELDS else value

        updated = Session.objects.filter(id__in=session_ids).update(updated_at=timezone.now(), **update_data)
        if updated != len(session_ids):
            raise DatabaseError(f"Expected to update {len(session_ids)} sessions, updated {updated}")

    @staticmethod
    def _apply_form_update(session_ids: list, resolved_form: dict):
        update_data = {field: resolved_form[key] for key, field in SURVEILLANCE_FORM_FIELDS.items() if key in resolved_form}
        if not update_data:
            return

        # forms are matched by session; sessions without one stay without one
        SurveillanceForm.objects.filter(session_id__in=session_ids).update(updated_at=timezone.now(), **update_data)


class ConflictLogService:
    """Read access to the conflict resolution audit trail"""

    @staticmethod
    def get_conflict_logs(site_access=None, site_id: int = None, month: int = None, year: int = None, session_id: int = None):  # type: ignore
        """
        Filtered resolution logs, most recent first

        Restricted callers only see logs of their own sites, and asking for
        another site raises AuthorizationError.
        """
        logs = SessionConflictResolution.objects.all()

        if site_access is not None and not site_access.is_global:
            if site_id is not None:
                if not site_access.allows(site_id):
                    raise AuthorizationError("Forbidden: You do not have access to logs for this site")
                logs = logs.filter(site_id=site_id)
            else:
                logs = logs.filter(site_id__in=site_access.user_sites)
        elif site_id is not None:
            logs = logs.filter(site_id=site_id)

        if month is not None:
            logs = logs.filter(month=month)

        if year is not None:
            logs = logs.filter(year=year)

        if session_id is not None:
            logs = logs.containing_session(session_id)

        return logs.order_by("-resolved_at", "-id")
