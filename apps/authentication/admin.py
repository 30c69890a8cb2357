from django.contrib import admin
from .models import User, UserWhitelist


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ["email", "first_name", "last_name", "privilege", "program", "is_active"]
    list_filter = ["privilege", "is_active"]
    search_fields = ["email", "first_name", "last_name"]
    readonly_fields = ["id", "last_login", "date_joined"]
    exclude = ["password"]


@admin.register(UserWhitelist)
class UserWhitelistAdmin(admin.ModelAdmin):
    list_display = ["email", "created_at"]
    search_fields = ["email"]
