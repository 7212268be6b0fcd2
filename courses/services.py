"""Admin operations on courses: create, edit, toggle and guarded delete."""
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q

from .exceptions import Conflict, DependentRecordsExist, NotFound, ValidationFailed
from .models import Course
from .models_feedback import Feedback

logger = logging.getLogger(__name__)

COURSE_FIELDS = ("name", "code", "description", "instructor", "department", "credits", "is_active")
DUPLICATE_COURSE = "Course with this name or code already exists"


def get_course(course_id) -> Course:
    course = Course.objects.select_related("created_by").filter(pk=course_id).first()
    if course is None:
        raise NotFound("Course not found")
    return course


def _clean_text(value) -> str:
    return (value or "").strip()


def _ensure_unique(name: str, code: str, exclude_pk=None) -> None:
    clash = Course.objects.filter(Q(name__iexact=name) | Q(code=code))
    if exclude_pk is not None:
        clash = clash.exclude(pk=exclude_pk)
    if clash.exists():
        raise Conflict(DUPLICATE_COURSE)


def _save(course: Course) -> Course:
    try:
        course.full_clean(validate_unique=False)
    except ValidationError as exc:
        raise ValidationFailed("Validation failed", exc.message_dict) from exc
    try:
        with transaction.atomic():
            course.save()
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_COURSE) from exc
    return course


def create_course(admin, **fields) -> Course:
    unknown = sorted(set(fields) - set(COURSE_FIELDS))
    if unknown:
        raise ValidationFailed(f"Unknown course field(s): {', '.join(unknown)}")
    course = Course(created_by=admin)
    for field, value in fields.items():
        setattr(course, field, _clean_text(value) if isinstance(value, str) else value)
    course.code = (course.code or "").upper()
    _ensure_unique(course.name, course.code)
    _save(course)
    logger.info("Course %s (%s) created by user %s", course.pk, course.code, admin.pk)
    return course


def update_course(course_id, **fields) -> Course:
    unknown = sorted(set(fields) - set(COURSE_FIELDS))
    if unknown:
        raise ValidationFailed(f"Unknown course field(s): {', '.join(unknown)}")
    course = get_course(course_id)
    for field, value in fields.items():
        setattr(course, field, _clean_text(value) if isinstance(value, str) else value)
    course.code = (course.code or "").upper()
    _ensure_unique(course.name, course.code, exclude_pk=course.pk)
    _save(course)
    logger.info("Course %s updated (%s)", course.pk, ", ".join(sorted(fields)) or "no fields")
    return course


def toggle_course_active(course_id) -> Course:
    course = get_course(course_id)
    course.is_active = not course.is_active
    course.save(update_fields=["is_active", "updated_at"])
    logger.info("Course %s %s", course.pk, "activated" if course.is_active else "deactivated")
    return course


def _dependents_error(count: int) -> DependentRecordsExist:
    return DependentRecordsExist(
        f"Cannot delete course. It has {count} feedback entries. Consider deactivating instead.",
        count,
    )


def delete_course(course_id) -> None:
    """Delete a course that no feedback references yet."""
    course = get_course(course_id)
    count = Feedback.objects.filter(course=course).count()
    if count:
        raise _dependents_error(count)
    try:
        course.delete()
    except ProtectedError as exc:
        # Feedback arrived between the count and the delete.
        raise _dependents_error(len(exc.protected_objects)) from exc
    logger.info("Course %s deleted", course_id)
