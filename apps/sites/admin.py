from django.contrib import admin
from .models import Program, Site, SiteUser


@admin.register(Program)
class ProgramAdmin(admin.ModelAdmin):
    list_display = ["name", "country", "created_at"]
    search_fields = ["name", "country"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Site)
class SiteAdmin(admin.ModelAdmin):
    list_display = ["id", "district", "village_name", "house_number", "program", "is_active"]
    list_filter = ["is_active", "district", "program"]
    search_fields = ["name", "district", "village_name", "house_number"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(SiteUser)
class SiteUserAdmin(admin.ModelAdmin):
    list_display = ["user", "site", "created_at"]
    search_fields = ["user__email"]
