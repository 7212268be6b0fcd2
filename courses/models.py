"""Course catalogue model.

Courses are created and maintained by admins. A course cannot be deleted
while feedback references it (foreign keys use PROTECT); admins
deactivate it instead, which also closes it to new feedback.
"""
from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator, RegexValidator
from django.db import models


course_code_validator = RegexValidator(
    r"^[A-Z0-9]+$", "Course code must contain only uppercase letters and numbers"
)


class Course(models.Model):
    """A course students can leave feedback on."""

    name = models.CharField(max_length=100, unique=True, validators=[MinLengthValidator(2)])
    code = models.CharField(max_length=20, unique=True, validators=[MinLengthValidator(2), course_code_validator])
    description = models.TextField(max_length=500, blank=True)
    instructor = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True, db_index=True)
    credits = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    is_active = models.BooleanField(default=True, db_index=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="created_courses")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} {self.name}"

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)


# Registered here so the app's model module exposes both models.
from .models_feedback import Feedback, FeedbackStatus  # noqa: E402,F401
