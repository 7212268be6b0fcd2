"""Accounts models: user profile and roles.

Defines a `UserProfile` associated one-to-one with Django's `User`,
capturing the role (student/admin), the block flag and optional contact
fields. The profile is created automatically on user creation.
"""
from __future__ import annotations

from datetime import date

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models
from django.utils import timezone


phone_validator = RegexValidator(r"^\+?[\d\s\-()]+$", "Please provide a valid phone number")


def validate_past_date(value: date) -> None:
    if value >= timezone.localdate():
        raise ValidationError("Date of birth must be in the past")


class Role(models.TextChoices):
    """Platform roles used for role-based guards."""

    STUDENT = "student", "Student"
    ADMIN = "admin", "Admin"


class UserProfile(models.Model):
    """Profile linked to a Django auth user.

    - `role`: authorisation gate for API endpoints
    - `is_blocked`: set by admins; blocked users cannot sign in or act
    - `profile_picture`: public URL returned by the image host, with the
      host's public id kept alongside so the asset can be removed later
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT, db_index=True)

    name = models.CharField(max_length=50, blank=True, validators=[MinLengthValidator(2)])
    phone = models.CharField(max_length=20, blank=True, validators=[phone_validator])
    date_of_birth = models.DateField(null=True, blank=True, validators=[validate_past_date])
    address = models.CharField(max_length=200, blank=True)

    profile_picture = models.URLField(max_length=500, null=True, blank=True)
    profile_picture_id = models.CharField(max_length=255, blank=True)

    is_blocked = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover (string repr convenience)
        return f"Profile<{self.user.username}:{self.role}>"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT

    @property
    def age(self) -> int | None:
        if not self.date_of_birth:
            return None
        today = timezone.localdate()
        dob = self.date_of_birth
        years = today.year - dob.year
        if (today.month, today.day) < (dob.month, dob.day):
            years -= 1
        return years
