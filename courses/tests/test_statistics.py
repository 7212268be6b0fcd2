from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

import pytest
from django.test import override_settings

from courses import statistics
from courses.exceptions import NotFound, ValidationFailed
from courses.models_feedback import Feedback, FeedbackStatus


def _feedback(student, course, rating, status=FeedbackStatus.APPROVED, when=None):
    fb = Feedback.objects.create(
        student=student, course=course, rating=rating, message="Solid course content overall.", status=status
    )
    if when is not None:
        Feedback.objects.filter(pk=fb.pk).update(created_at=when)
    return fb


def _students(make_user, count, prefix="s"):
    return [make_user(f"{prefix}{i}@example.edu") for i in range(count)]


def test_round_rating_rounds_half_away_from_zero():
    assert statistics.round_rating(2.675) == 2.68
    assert statistics.round_rating(0.125) == 0.13
    assert statistics.round_rating(None) == 0.0


def test_months_before_clamps_day_to_month_end():
    moment = datetime(2024, 3, 31, 12, 0, tzinfo=dt_timezone.utc)
    assert statistics.months_before(moment, 1) == datetime(2024, 2, 29, 12, 0, tzinfo=dt_timezone.utc)
    assert statistics.months_before(moment, 15).date().isoformat() == "2022-12-31"


@pytest.mark.django_db
def test_course_statistics_average_and_distribution(make_user, course):
    for student, rating in zip(_students(make_user, 5), [5, 5, 4, 3, 1]):
        _feedback(student, course, rating)

    stats = statistics.course_statistics(course.pk)
    assert stats["total_feedback"] == 5
    assert stats["average_rating"] == 3.6
    assert stats["rating_distribution"] == {1: 1, 2: 0, 3: 1, 4: 1, 5: 2}


@pytest.mark.django_db
def test_course_statistics_counts_only_approved(make_user, course):
    a, b, c = _students(make_user, 3)
    _feedback(a, course, 5)
    _feedback(b, course, 1, status=FeedbackStatus.PENDING)
    _feedback(c, course, 1, status=FeedbackStatus.REJECTED)

    stats = statistics.course_statistics(course.pk)
    assert stats["total_feedback"] == 1
    assert stats["average_rating"] == 5.0


@pytest.mark.django_db
def test_course_statistics_empty_course_is_zeroed(course):
    assert statistics.course_statistics(course.pk) == {
        "total_feedback": 0,
        "average_rating": 0.0,
        "rating_distribution": {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
    }


@pytest.mark.django_db
def test_course_statistics_unknown_course():
    with pytest.raises(NotFound):
        statistics.course_statistics(999_999)


@pytest.mark.django_db
def test_overall_statistics_per_course_average(make_user, make_course):
    first, second, _unused = make_course("AA1"), make_course("BB2"), make_course("CC3")
    s1, s2, s3 = _students(make_user, 3)
    _feedback(s1, first, 4)
    _feedback(s2, first, 2)
    _feedback(s3, second, 3)

    stats = statistics.overall_statistics()
    assert stats["total_feedback"] == 3
    assert stats["average_rating"] == 3.0
    assert stats["total_courses"] == 2
    assert stats["avg_feedback_per_course"] == 1.5


@pytest.mark.django_db
def test_overall_statistics_with_no_feedback():
    stats = statistics.overall_statistics()
    assert stats["total_feedback"] == 0
    assert stats["total_courses"] == 0
    assert stats["avg_feedback_per_course"] == 0.0


@pytest.mark.django_db
def test_top_courses_orders_by_count_then_id(make_user, make_course):
    busy, tie_a, tie_b = make_course("BUSY1"), make_course("TIEA1"), make_course("TIEB1")
    students = _students(make_user, 3)
    for s in students:
        _feedback(s, busy, 4)
    _feedback(students[0], tie_b, 2)
    _feedback(students[1], tie_a, 5)

    top = statistics.top_courses(limit=5)
    assert [row["course_code"] for row in top] == ["BUSY1", "TIEA1", "TIEB1"]
    assert top[0]["feedback_count"] == 3
    assert top[0]["average_rating"] == 4.0
    assert statistics.top_courses(limit=1)[0]["course_id"] == busy.pk


@pytest.mark.django_db
def test_top_courses_rejects_non_positive_limit():
    with pytest.raises(ValidationFailed):
        statistics.top_courses(limit=0)


@pytest.mark.django_db
def test_monthly_trends_skips_empty_months(make_user, make_course):
    now = datetime(2024, 6, 15, 12, 0, tzinfo=dt_timezone.utc)
    courses = [make_course(f"TR{i}") for i in range(3)]
    s1, s2 = _students(make_user, 2)
    _feedback(s1, courses[0], 5, when=datetime(2024, 2, 10, tzinfo=dt_timezone.utc))
    _feedback(s2, courses[0], 2, when=datetime(2024, 2, 20, tzinfo=dt_timezone.utc))
    _feedback(s1, courses[1], 4, status=FeedbackStatus.PENDING, when=datetime(2024, 5, 1, tzinfo=dt_timezone.utc))
    # Outside the six month window.
    _feedback(s1, courses[2], 1, when=datetime(2023, 11, 30, tzinfo=dt_timezone.utc))

    trends = statistics.monthly_trends(6, now=now)
    assert trends == [
        {"month": "2024-02", "count": 2, "average_rating": 3.5},
        {"month": "2024-05", "count": 1, "average_rating": 4.0},
    ]
    approved_only = statistics.monthly_trends(6, now=now, status=FeedbackStatus.APPROVED)
    assert [row["month"] for row in approved_only] == ["2024-02"]


@pytest.mark.django_db
@override_settings(TIME_ZONE="America/New_York")
def test_monthly_trends_bucket_by_utc_month(student, course):
    now = datetime(2024, 6, 15, 12, 0, tzinfo=dt_timezone.utc)
    # Still February in New York, already March in UTC.
    _feedback(student, course, 3, when=datetime(2024, 3, 1, 2, 0, tzinfo=dt_timezone.utc))
    assert [row["month"] for row in statistics.monthly_trends(6, now=now)] == ["2024-03"]


@pytest.mark.django_db
def test_monthly_trends_empty_and_invalid_window():
    assert statistics.monthly_trends(6) == []
    with pytest.raises(ValidationFailed):
        statistics.monthly_trends(0)


@pytest.mark.django_db
def test_user_statistics_cover_every_status(student, make_course):
    _feedback(student, make_course("US1"), 5)
    _feedback(student, make_course("US2"), 2, status=FeedbackStatus.REJECTED)

    stats = statistics.user_feedback_statistics(student.pk)
    assert stats["total_feedback"] == 2
    assert stats["average_rating"] == 3.5
    assert stats["rating_distribution"][2] == 1


@pytest.mark.django_db
def test_user_statistics_unknown_user():
    with pytest.raises(NotFound):
        statistics.user_feedback_statistics(424_242)


@pytest.mark.django_db
def test_admin_dashboard_counts(make_user, make_course, admin_user):
    active = make_user("active@example.edu")
    make_user("blocked@example.edu", blocked=True)
    live = make_course("LIVE1")
    make_course("GONE1", is_active=False)
    _feedback(active, live, 4)

    data = statistics.admin_dashboard()
    assert data["users"] == {"total_students": 2, "active_students": 1, "blocked_students": 1}
    assert data["courses"] == {"total_courses": 2, "active_courses": 1, "inactive_courses": 1}
    assert data["feedback"]["total_feedback"] == 1
    assert data["feedback"]["recent_feedback"] == 1
    assert data["activity"]["recent_students"] == 2
    assert data["top_courses"][0]["course_code"] == "LIVE1"
    assert len(data["monthly_trends"]) == 1
