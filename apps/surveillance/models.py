from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import connections, models
from django.db.models.expressions import RawSQL
from django.utils import timezone

from apps.sites.models import Site


class Session(models.Model):
    """One field collection event at a site"""

    TYPE_SURVEILLANCE = "SURVEILLANCE"
    TYPE_DATA_COLLECTION = "DATA_COLLECTION"
    TYPE_CHOICES = (
        (TYPE_SURVEILLANCE, "Surveillance"),
        (TYPE_DATA_COLLECTION, "Data collection"),
    )

    frontend_id = models.CharField(max_length=64, unique=True)  # client-generated
    site = models.ForeignKey(Site, related_name="sessions", on_delete=models.CASCADE)
    collector_title = models.CharField(max_length=255, null=True, blank=True)
    collector_name = models.CharField(max_length=255, null=True, blank=True)
    collection_date = models.DateTimeField(null=True, blank=True)
    collection_method = models.CharField(max_length=255, null=True, blank=True)
    specimen_condition = models.CharField(max_length=255, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_SURVEILLANCE)
    collector_last_trained_on = models.DateTimeField(null=True, blank=True)
    hardware_id = models.CharField(max_length=64, null=True, blank=True)
    total_specimens = models.IntegerField(null=True, blank=True, default=0)

    # timestamps
    created_at = models.DateTimeField(null=True, blank=True)  # set on the device
    completed_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sessions"
        ordering = ["-submitted_at"]
        indexes = [
            models.Index(fields=["site", "collection_date"], name="sessions_site_date_idx"),
            models.Index(fields=["type", "collection_date"], name="sessions_type_date_idx"),
        ]

    def __str__(self):
        return f"Session {self.id} ({self.frontend_id})"

    @property
    def bucket_date(self):
        """Date that decides the session's month/year bucket"""
        return self.collection_date or self.created_at


class SurveillanceForm(models.Model):
    session = models.OneToOneField(Session, related_name="surveillance_form", on_delete=models.CASCADE)
    num_people_slept_in_house = models.IntegerField(null=True, blank=True)
    was_irs_conducted = models.BooleanField(null=True, blank=True)
    months_since_irs = models.IntegerField(null=True, blank=True)
    num_llins_available = models.IntegerField(null=True, blank=True)
    llin_type = models.CharField(max_length=255, null=True, blank=True)
    llin_brand = models.CharField(max_length=255, null=True, blank=True)
    num_people_slept_under_llin = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "surveillance_forms"

    def __str__(self):
        return f"Surveillance form for session {self.session_id}"


class Specimen(models.Model):
    specimen_id = models.CharField(max_length=255)
    session = models.ForeignKey(Session, related_name="specimens", on_delete=models.CASCADE)
    thumbnail_image = models.ForeignKey(
        "SpecimenImage", null=True, blank=True, related_name="+", on_delete=models.SET_NULL
    )
    should_process_further = models.BooleanField(default=False)
    total_images = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "specimens"
        constraints = [models.UniqueConstraint(fields=["session", "specimen_id"], name="unique_session_specimen")]

    def __str__(self):
        return self.specimen_id


class SpecimenImage(models.Model):
    specimen = models.ForeignKey(Specimen, related_name="images", on_delete=models.CASCADE)
    image_key = models.TextField(null=True, blank=True)
    species = models.CharField(max_length=255, null=True, blank=True)
    sex = models.CharField(max_length=255, null=True, blank=True)
    abdomen_status = models.CharField(max_length=255, null=True, blank=True)
    captured_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "specimen_images"

    def __str__(self):
        return f"Image {self.id} of specimen {self.specimen_id}"


class ImmutableRecordError(Exception):
    pass


class SessionConflictResolutionQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableRecordError("Conflict resolution logs cannot be updated")

    def delete(self):
        raise ImmutableRecordError("Conflict resolution logs cannot be deleted")

    def containing_session(self, session_id: int):
        """Logs whose session_ids list contains session_id"""
        if connections[self.db].features.supports_json_field_contains:
            return self.filter(session_ids__contains=[session_id])

        # SQLite has no JSON containment operator
        table = self.model._meta.db_table
        return self.filter(
            RawSQL(
                f'EXISTS (SELECT 1 FROM json_each("{table}"."session_ids") WHERE json_each.value = %s)',
                (session_id,),
                output_field=models.BooleanField(),
            )
        )


class SessionConflictResolution(models.Model):
    """
    Append-only audit log of a conflict resolution

    before_data holds every merged session (and its form, when present) as it
    was before the merge; after_data holds the values that were applied.
    """

    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        related_name="conflict_resolutions",
        on_delete=models.SET_NULL,
    )
    resolved_at = models.DateTimeField(default=timezone.now, db_index=True)
    session_ids = models.JSONField()
    site = models.ForeignKey(Site, related_name="conflict_resolutions", on_delete=models.PROTECT)
    month = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(12)])
    year = models.PositiveSmallIntegerField()
    before_data = models.JSONField()
    after_data = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = SessionConflictResolutionQuerySet.as_manager()

    class Meta:
        db_table = "session_conflict_resolutions"
        ordering = ["-resolved_at", "-id"]
        indexes = [models.Index(fields=["site", "year", "month"], name="resolutions_site_period_idx")]

    def __str__(self):
        return f"Resolution {self.id} for site {self.site_id} ({self.month}/{self.year})"

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise ImmutableRecordError("Conflict resolution logs cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("Conflict resolution logs cannot be deleted")
