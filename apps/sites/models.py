from django.conf import settings
from django.db import models


class Program(models.Model):
    name = models.CharField(max_length=255)
    country = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "programs"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Site(models.Model):
    """A physical collection location (a house)"""

    program = models.ForeignKey(Program, related_name="sites", on_delete=models.CASCADE)
    parent = models.ForeignKey("self", null=True, blank=True, related_name="children", on_delete=models.SET_NULL)
    name = models.CharField(max_length=255, null=True, blank=True)
    district = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    sub_county = models.CharField(max_length=255, null=True, blank=True)
    parish = models.CharField(max_length=255, null=True, blank=True)
    village_name = models.CharField(max_length=255, null=True, blank=True)
    house_number = models.CharField(max_length=255, blank=True, default="")
    health_center = models.CharField(max_length=255, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "sites"
        ordering = ["id"]
        indexes = [models.Index(fields=["district", "is_active"], name="sites_district_active_idx")]

    def __str__(self):
        return f"{self.district or '-'} / {self.village_name or '-'} / {self.house_number or self.id}"


class SiteUser(models.Model):
    """Assignment of a user to a site"""

    site = models.ForeignKey(Site, related_name="site_users", on_delete=models.CASCADE)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="site_users", on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "site_users"
        constraints = [models.UniqueConstraint(fields=["site", "user"], name="unique_site_user")]
