"""Read-only feedback statistics for dashboards, course pages and exports.

Every function here only reads. Averages are rounded to two decimals
half away from zero, and rating distributions always carry the keys 1..5
even when a bucket is empty. An empty selection is a valid, zeroed
result; only a reference to a missing course or user is an error.

Course-level and overall figures count approved feedback only. A
student's own statistics cover every status so they can see pending or
rejected submissions too.
"""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Avg, Count, QuerySet
from django.db.models.functions import TruncMonth
from django.utils import timezone

from accounts.models import Role, UserProfile
from .exceptions import NotFound, ValidationFailed
from .models import Course
from .models_feedback import Feedback, FeedbackStatus

RATINGS = (1, 2, 3, 4, 5)
_CENTS = Decimal("0.01")


def round_rating(value) -> float:
    """Round to 2 decimals, half away from zero; `None` becomes 0."""
    if value is None:
        return 0.0
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def empty_distribution() -> dict[int, int]:
    return {rating: 0 for rating in RATINGS}


def months_before(moment: datetime, months: int) -> datetime:
    """Shift `moment` back by whole calendar months, clamping the day."""
    index = moment.year * 12 + (moment.month - 1) - months
    year, month0 = divmod(index, 12)
    day = min(moment.day, calendar.monthrange(year, month0 + 1)[1])
    return moment.replace(year=year, month=month0 + 1, day=day)


def summarize(queryset: QuerySet) -> dict[str, Any]:
    """Count, mean rating and 1..5 histogram for any feedback queryset.

    Callers narrow the queryset first (course, student, status, dates).
    """
    base = queryset.order_by()
    totals = base.aggregate(total=Count("id"), average=Avg("rating"))
    distribution = empty_distribution()
    for row in base.values("rating").annotate(n=Count("id")):
        distribution[row["rating"]] = row["n"]
    return {
        "total_feedback": totals["total"] or 0,
        "average_rating": round_rating(totals["average"]),
        "rating_distribution": distribution,
    }


def approved_feedback() -> QuerySet:
    return Feedback.objects.filter(status=FeedbackStatus.APPROVED)


def course_statistics(course_id) -> dict[str, Any]:
    """Approved-feedback statistics for one course."""
    if not Course.objects.filter(pk=course_id).exists():
        raise NotFound("Course not found")
    return summarize(approved_feedback().filter(course_id=course_id))


def overall_statistics() -> dict[str, Any]:
    """Platform-wide approved-feedback statistics.

    `total_courses` counts courses with at least one approved feedback,
    and `avg_feedback_per_course` averages over those courses only.
    """
    approved = approved_feedback()
    result = summarize(approved)
    total_courses = approved.order_by().values("course").distinct().count()
    result["total_courses"] = total_courses
    result["avg_feedback_per_course"] = (
        round_rating(Decimal(result["total_feedback"]) / Decimal(total_courses)) if total_courses else 0.0
    )
    return result


def top_courses(limit: int = 5) -> list[dict[str, Any]]:
    """Courses with the most approved feedback.

    Ties on feedback count are ordered by course id so the result is
    stable for identical data.
    """
    if limit < 1:
        raise ValidationFailed("Limit must be a positive integer")
    rows = (
        approved_feedback()
        .order_by()
        .values("course", "course__name", "course__code")
        .annotate(feedback_count=Count("id"), average=Avg("rating"))
        .order_by("-feedback_count", "course")[:limit]
    )
    return [
        {
            "course_id": row["course"],
            "course_name": row["course__name"],
            "course_code": row["course__code"],
            "feedback_count": row["feedback_count"],
            "average_rating": round_rating(row["average"]),
        }
        for row in rows
    ]


def monthly_trends(window_months: int = 6, *, now: datetime | None = None, status: str | None = None) -> list[dict[str, Any]]:
    """Feedback count and mean rating per calendar month, oldest first.

    Only months inside the trailing window that hold at least one record
    appear; there is no zero-filling. All statuses count unless `status`
    is given.
    """
    if window_months < 1:
        raise ValidationFailed("Window must be at least one month")
    now = now or timezone.now()
    qs = Feedback.objects.filter(created_at__gte=months_before(now, window_months), created_at__lte=now)
    if status:
        qs = qs.filter(status=status)
    rows = (
        qs.order_by()
        .annotate(month=TruncMonth("created_at", tzinfo=dt_timezone.utc))
        .values("month")
        .annotate(count=Count("id"), average=Avg("rating"))
        .order_by("month")
    )
    return [
        {
            "month": row["month"].strftime("%Y-%m"),
            "count": row["count"],
            "average_rating": round_rating(row["average"]),
        }
        for row in rows
        if row["count"]
    ]


def user_feedback_statistics(user_id) -> dict[str, Any]:
    """Statistics over one student's own feedback, every status included."""
    if not get_user_model().objects.filter(pk=user_id).exists():
        raise NotFound("User not found")
    return summarize(Feedback.objects.filter(student_id=user_id))


def admin_dashboard(now: datetime | None = None) -> dict[str, Any]:
    """Everything the admin dashboard shows in one payload."""
    now = now or timezone.now()
    recent_since = now - timedelta(days=settings.DASHBOARD_RECENT_DAYS)

    students = UserProfile.objects.filter(role=Role.STUDENT)
    total_students = students.count()
    active_students = students.filter(is_blocked=False).count()

    total_courses = Course.objects.count()
    active_courses = Course.objects.filter(is_active=True).count()

    recent_feedback = Feedback.objects.filter(created_at__gte=recent_since).count()
    recent_students = students.filter(user__date_joined__gte=recent_since).count()

    return {
        "users": {
            "total_students": total_students,
            "active_students": active_students,
            "blocked_students": total_students - active_students,
        },
        "courses": {
            "total_courses": total_courses,
            "active_courses": active_courses,
            "inactive_courses": total_courses - active_courses,
        },
        "feedback": {**overall_statistics(), "recent_feedback": recent_feedback},
        "activity": {
            "recent_students": recent_students,
            "recent_feedback": recent_feedback,
        },
        "top_courses": top_courses(settings.DASHBOARD_TOP_COURSES),
        "monthly_trends": monthly_trends(settings.DASHBOARD_TREND_MONTHS, now=now),
    }
