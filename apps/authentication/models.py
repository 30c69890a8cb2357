from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required")
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("privilege", User.PRIVILEGE_PROGRAM_ADMIN)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    # 0: read assigned sites, 1: read all program sites,
    # 2: read/write assigned sites, 3: read/write all program sites
    PRIVILEGE_ASSIGNED_READ = 0
    PRIVILEGE_PROGRAM_READ = 1
    PRIVILEGE_ASSIGNED_WRITE = 2
    PRIVILEGE_PROGRAM_ADMIN = 3
    PRIVILEGE_CHOICES = [
        (PRIVILEGE_ASSIGNED_READ, "Read assigned sites"),
        (PRIVILEGE_PROGRAM_READ, "Read all program sites"),
        (PRIVILEGE_ASSIGNED_WRITE, "Read/write assigned sites"),
        (PRIVILEGE_PROGRAM_ADMIN, "Read/write all program sites"),
    ]

    username = None
    email = models.EmailField(unique=True)
    privilege = models.IntegerField(choices=PRIVILEGE_CHOICES, default=PRIVILEGE_ASSIGNED_READ)
    program = models.ForeignKey("sites.Program", null=True, blank=True, related_name="users", on_delete=models.SET_NULL)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = "users"

    def __str__(self):
        return self.email

    @property
    def is_whitelisted(self) -> bool:
        return UserWhitelist.objects.filter(email__iexact=self.email).exists()


class UserWhitelist(models.Model):
    """Emails allowed to use the dashboard"""

    email = models.EmailField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "user_whitelist"
        ordering = ["email"]

    def __str__(self):
        return self.email
