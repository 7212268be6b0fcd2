"""Course feedback model."""
from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models

from .models import Course


class FeedbackStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Feedback(models.Model):
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name="feedback")
    student = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="feedback")
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    message = models.TextField(max_length=1000, validators=[MinLengthValidator(10)])
    is_anonymous = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)
    status = models.CharField(
        max_length=16, choices=FeedbackStatus.choices, default=FeedbackStatus.APPROVED, db_index=True
    )
    moderator_notes = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["student", "course"], name="unique_feedback_per_student_course"),
            models.CheckConstraint(check=models.Q(rating__gte=1, rating__lte=5), name="feedback_rating_1_5"),
        ]
        indexes = [
            models.Index(fields=["course", "rating"], name="feedback_course_rating_idx"),
            models.Index(fields=["student", "-created_at"], name="feedback_student_recent_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.course_id}:{self.student_id}={self.rating}"
