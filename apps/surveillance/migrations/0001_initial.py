import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("sites", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("frontend_id", models.CharField(max_length=64, unique=True)),
                ("collector_title", models.CharField(blank=True, max_length=255, null=True)),
                ("collector_name", models.CharField(blank=True, max_length=255, null=True)),
                ("collection_date", models.DateTimeField(blank=True, null=True)),
                ("collection_method", models.CharField(blank=True, max_length=255, null=True)),
                ("specimen_condition", models.CharField(blank=True, max_length=255, null=True)),
                ("notes", models.TextField(blank=True, null=True)),
                ("latitude", models.FloatField(blank=True, null=True)),
                ("longitude", models.FloatField(blank=True, null=True)),
                (
                    "type",
                    models.CharField(
                        choices=[("SURVEILLANCE", "Surveillance"), ("DATA_COLLECTION", "Data collection")],
                        default="SURVEILLANCE",
                        max_length=32,
                    ),
                ),
                ("collector_last_trained_on", models.DateTimeField(blank=True, null=True)),
                ("hardware_id", models.CharField(blank=True, max_length=64, null=True)),
                ("total_specimens", models.IntegerField(blank=True, default=0, null=True)),
                ("created_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "site",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="sites.site",
                    ),
                ),
            ],
            options={
                "db_table": "sessions",
                "ordering": ["-submitted_at"],
                "indexes": [
                    models.Index(fields=["site", "collection_date"], name="sessions_site_date_idx"),
                    models.Index(fields=["type", "collection_date"], name="sessions_type_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SurveillanceForm",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("num_people_slept_in_house", models.IntegerField(blank=True, null=True)),
                ("was_irs_conducted", models.BooleanField(blank=True, null=True)),
                ("months_since_irs", models.IntegerField(blank=True, null=True)),
                ("num_llins_available", models.IntegerField(blank=True, null=True)),
                ("llin_type", models.CharField(blank=True, max_length=255, null=True)),
                ("llin_brand", models.CharField(blank=True, max_length=255, null=True)),
                ("num_people_slept_under_llin", models.IntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "session",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="surveillance_form",
                        to="surveillance.session",
                    ),
                ),
            ],
            options={
                "db_table": "surveillance_forms",
            },
        ),
        migrations.CreateModel(
            name="Specimen",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("specimen_id", models.CharField(max_length=255)),
                ("should_process_further", models.BooleanField(default=False)),
                ("total_images", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "session",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="specimens",
                        to="surveillance.session",
                    ),
                ),
            ],
            options={
                "db_table": "specimens",
            },
        ),
        migrations.CreateModel(
            name="SpecimenImage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("image_key", models.TextField(blank=True, null=True)),
                ("species", models.CharField(blank=True, max_length=255, null=True)),
                ("sex", models.CharField(blank=True, max_length=255, null=True)),
                ("abdomen_status", models.CharField(blank=True, max_length=255, null=True)),
                ("captured_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "specimen",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="images",
                        to="surveillance.specimen",
                    ),
                ),
            ],
            options={
                "db_table": "specimen_images",
            },
        ),
        migrations.AddField(
            model_name="specimen",
            name="thumbnail_image",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="surveillance.specimenimage",
            ),
        ),
        migrations.AddConstraint(
            model_name="specimen",
            constraint=models.UniqueConstraint(fields=("session", "specimen_id"), name="unique_session_specimen"),
        ),
        migrations.CreateModel(
            name="SessionConflictResolution",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("resolved_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("session_ids", models.JSONField()),
                (
                    "month",
                    models.PositiveSmallIntegerField(
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(12),
                        ]
                    ),
                ),
                ("year", models.PositiveSmallIntegerField()),
                ("before_data", models.JSONField()),
                ("after_data", models.JSONField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "resolved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="conflict_resolutions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "site",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="conflict_resolutions",
                        to="sites.site",
                    ),
                ),
            ],
            options={
                "db_table": "session_conflict_resolutions",
                "ordering": ["-resolved_at", "-id"],
                "indexes": [models.Index(fields=["site", "year", "month"], name="resolutions_site_period_idx")],
            },
        ),
    ]
