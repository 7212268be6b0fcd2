"""Feedback lifecycle: submit, edit, delete and moderate.

A student holds at most one feedback per course. New feedback starts in
the configured initial status (approved unless moderation is switched
on) and only its author may edit or delete it. After every create, and
after any edit touching the rating or the tags, the sentiment hook runs
so each feedback carries exactly one sentiment tag matching its rating.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import IntegrityError, transaction

from .exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationFailed
from .models import Course
from .models_feedback import Feedback, FeedbackStatus

logger = logging.getLogger(__name__)

POSITIVE = "positive"
NEUTRAL = "neutral"
NEEDS_IMPROVEMENT = "needs-improvement"
SENTIMENT_TAGS = (POSITIVE, NEUTRAL, NEEDS_IMPROVEMENT)

MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000
TAG_MAX_LENGTH = 50
MAX_TAGS = 10

EDITABLE_FIELDS = ("rating", "message", "is_anonymous", "tags")
DUPLICATE_MESSAGE = "You have already submitted feedback for this course"


def sentiment_for(rating: int) -> str:
    if rating >= 4:
        return POSITIVE
    if rating <= 2:
        return NEEDS_IMPROVEMENT
    return NEUTRAL


def initial_status() -> str:
    status = settings.FEEDBACK_INITIAL_STATUS
    if status not in FeedbackStatus.values:
        raise ImproperlyConfigured(f"FEEDBACK_INITIAL_STATUS must be one of {FeedbackStatus.values}")
    return status


def validate_rating(value) -> int:
    not_whole = ValidationFailed("Rating must be between 1 and 5", {"rating": ["Rating must be a whole number"]})
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise not_whole
    try:
        rating = int(value)
    except ValueError:
        raise not_whole from None
    if rating < 1 or rating > 5:
        raise ValidationFailed("Rating must be between 1 and 5", {"rating": ["Rating must be between 1 and 5"]})
    return rating


def validate_message(value) -> str:
    message = value.strip() if isinstance(value, str) else None
    if message is None or not (MESSAGE_MIN_LENGTH <= len(message) <= MESSAGE_MAX_LENGTH):
        detail = f"Feedback message must be between {MESSAGE_MIN_LENGTH} and {MESSAGE_MAX_LENGTH} characters"
        raise ValidationFailed(detail, {"message": [detail]})
    return message


def normalize_tags(tags) -> list[str]:
    """Trim, lower-case and de-duplicate user tags, keeping their order."""
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)):
        raise ValidationFailed("Tags must be an array", {"tags": ["Tags must be an array"]})
    cleaned: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationFailed("Tags must be strings", {"tags": ["Tags must be strings"]})
        tag = tag.strip().lower()
        if not tag or tag in cleaned:
            continue
        if len(tag) > TAG_MAX_LENGTH:
            raise ValidationFailed(
                f"Tag cannot exceed {TAG_MAX_LENGTH} characters", {"tags": [f"Tag cannot exceed {TAG_MAX_LENGTH} characters"]}
            )
        cleaned.append(tag)
    if len(cleaned) > MAX_TAGS:
        raise ValidationFailed(f"At most {MAX_TAGS} tags are allowed", {"tags": [f"At most {MAX_TAGS} tags are allowed"]})
    return cleaned


def apply_sentiment_tag(feedback: Feedback) -> bool:
    """Make the sentiment tag match the rating; return True if tags changed.

    Sentiment tags from other buckets are dropped so a rating edit that
    crosses a bucket boundary does not leave a stale label behind.
    """
    wanted = sentiment_for(feedback.rating)
    current = list(feedback.tags or [])
    tags = [tag for tag in current if tag not in SENTIMENT_TAGS or tag == wanted]
    if wanted not in tags:
        tags.append(wanted)
    if tags == current:
        return False
    feedback.tags = tags
    return True


def _run_sentiment_hook(feedback: Feedback) -> None:
    if apply_sentiment_tag(feedback):
        feedback.save(update_fields=["tags", "updated_at"])


def get_feedback(feedback_id) -> Feedback:
    feedback = Feedback.objects.select_related("course", "student", "student__profile").filter(pk=feedback_id).first()
    if feedback is None:
        raise NotFound("Feedback not found")
    return feedback


def get_feedback_for(user, feedback_id) -> Feedback:
    """Fetch feedback the user may see: admins see all, students their own."""
    feedback = get_feedback(feedback_id)
    profile = getattr(user, "profile", None)
    if not getattr(profile, "is_admin", False) and feedback.student_id != user.pk:
        raise Forbidden("Not authorized to view this feedback")
    return feedback


def submit_feedback(student, course_id, *, rating, message, is_anonymous: bool = False, tags=None) -> Feedback:
    """Create feedback for `course_id` on behalf of `student`.

    Raises NotFound for an unknown course, InvalidState for an inactive
    one and Conflict when the student already has feedback there.
    """
    rating = validate_rating(rating)
    message = validate_message(message)
    tags = normalize_tags(tags)

    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        raise NotFound("Course not found")
    if not course.is_active:
        raise InvalidState("Cannot submit feedback for inactive course")
    if Feedback.objects.filter(student=student, course=course).exists():
        raise Conflict(DUPLICATE_MESSAGE)

    feedback = Feedback(
        student=student,
        course=course,
        rating=rating,
        message=message,
        is_anonymous=bool(is_anonymous),
        tags=tags,
        status=initial_status(),
    )
    try:
        with transaction.atomic():
            feedback.save()
            _run_sentiment_hook(feedback)
    except IntegrityError as exc:
        # A concurrent submission won the race for the unique constraint.
        raise Conflict(DUPLICATE_MESSAGE) from exc
    logger.info("Feedback %s submitted by user %s for course %s", feedback.pk, student.pk, course.pk)
    return feedback


def update_feedback(user, feedback_id, **changes) -> Feedback:
    """Apply owner edits; fields left out of `changes` are untouched."""
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationFailed(f"Cannot update field(s): {', '.join(unknown)}")

    feedback = get_feedback(feedback_id)
    if feedback.student_id != user.pk:
        raise Forbidden("Not authorized to update this feedback")

    # Validate everything before touching the instance.
    values = {}
    if changes.get("rating") is not None:
        values["rating"] = validate_rating(changes["rating"])
    if changes.get("message") is not None:
        values["message"] = validate_message(changes["message"])
    if changes.get("is_anonymous") is not None:
        values["is_anonymous"] = bool(changes["is_anonymous"])
    if changes.get("tags") is not None:
        values["tags"] = normalize_tags(changes["tags"])
    if not values:
        return feedback

    for field, value in values.items():
        setattr(feedback, field, value)
    with transaction.atomic():
        feedback.save(update_fields=[*values, "updated_at"])
        if "rating" in values or "tags" in values:
            _run_sentiment_hook(feedback)
    logger.info("Feedback %s updated by user %s (%s)", feedback.pk, user.pk, ", ".join(values))
    return feedback


def delete_feedback(user, feedback_id) -> None:
    feedback = get_feedback(feedback_id)
    if feedback.student_id != user.pk:
        raise Forbidden("Not authorized to delete this feedback")
    feedback.delete()
    logger.info("Feedback %s deleted by user %s", feedback_id, user.pk)


def moderate_feedback(feedback_id, *, status: str, moderator_notes: str | None = None) -> Feedback:
    """Admin review: move feedback between pending, approved and rejected."""
    if status not in FeedbackStatus.values:
        raise ValidationFailed(
            "Status must be pending, approved or rejected", {"status": ["Invalid status"]}
        )
    notes = moderator_notes.strip() if moderator_notes is not None else None
    if notes is not None and len(notes) > 500:
        raise ValidationFailed("Moderator notes cannot exceed 500 characters")
    feedback = get_feedback(feedback_id)
    feedback.status = status
    update_fields = ["status", "updated_at"]
    if notes is not None:
        feedback.moderator_notes = notes
        update_fields.append("moderator_notes")
    feedback.save(update_fields=update_fields)
    logger.info("Feedback %s moderated to %s", feedback.pk, status)
    return feedback
