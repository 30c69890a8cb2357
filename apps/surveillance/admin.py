from django.contrib import admin
from .models import Session, SessionConflictResolution, Specimen, SurveillanceForm


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ["id", "frontend_id", "site", "type", "collection_date", "collector_name", "submitted_at"]
    list_filter = ["type"]
    search_fields = ["frontend_id", "collector_name", "site__district"]
    readonly_fields = ["id", "submitted_at", "updated_at"]


@admin.register(SurveillanceForm)
class SurveillanceFormAdmin(admin.ModelAdmin):
    list_display = ["session", "num_people_slept_in_house", "num_llins_available", "num_people_slept_under_llin"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Specimen)
class SpecimenAdmin(admin.ModelAdmin):
    list_display = ["specimen_id", "session", "total_images", "should_process_further"]
    search_fields = ["specimen_id"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(SessionConflictResolution)
class SessionConflictResolutionAdmin(admin.ModelAdmin):
    """Audit log: viewable, never editable"""

    list_display = ["id", "site", "month", "year", "resolved_by", "resolved_at"]
    list_filter = ["year", "month"]
    readonly_fields = [
        "id",
        "resolved_by",
        "resolved_at",
        "session_ids",
        "site",
        "month",
        "year",
        "before_data",
        "after_data",
        "created_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
