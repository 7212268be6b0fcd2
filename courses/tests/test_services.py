from __future__ import annotations

import pytest

from courses import services
from courses.exceptions import Conflict, DependentRecordsExist, NotFound, ValidationFailed
from courses.models import Course
from courses.models_feedback import Feedback


@pytest.mark.django_db
def test_create_course_normalises_code_and_sets_creator(admin_user):
    course = services.create_course(admin_user, name="  Operating Systems ", code="cs301", credits=3)
    assert course.name == "Operating Systems"
    assert course.code == "CS301"
    assert course.created_by == admin_user
    assert course.is_active is True


@pytest.mark.django_db
def test_create_course_duplicate_name_or_code(admin_user, course):
    with pytest.raises(Conflict):
        services.create_course(admin_user, name="introduction to computing", code="NEW1")
    with pytest.raises(Conflict):
        services.create_course(admin_user, name="Another", code="cs101")


@pytest.mark.django_db
def test_create_course_validates_fields(admin_user):
    with pytest.raises(ValidationFailed) as exc:
        services.create_course(admin_user, name="Bad Code", code="CS-1", credits=12)
    assert set(exc.value.errors) >= {"code", "credits"}
    assert not Course.objects.exists()


@pytest.mark.django_db
def test_update_course_keeps_own_name(course):
    updated = services.update_course(course.pk, name=course.name, instructor="Dr. New")
    assert updated.instructor == "Dr. New"
    with pytest.raises(NotFound):
        services.update_course(123_456, name="Nothing")


@pytest.mark.django_db
def test_toggle_course_active_twice_restores(course):
    assert services.toggle_course_active(course.pk).is_active is False
    assert services.toggle_course_active(course.pk).is_active is True


@pytest.mark.django_db
def test_delete_course_guarded_by_feedback_count(make_user, course):
    for i in range(2):
        Feedback.objects.create(
            student=make_user(f"g{i}@example.edu"), course=course, rating=4, message="Useful and clear."
        )

    with pytest.raises(DependentRecordsExist) as exc:
        services.delete_course(course.pk)
    assert exc.value.count == 2
    assert "It has 2 feedback entries" in exc.value.message
    assert Course.objects.filter(pk=course.pk).exists()


@pytest.mark.django_db
def test_delete_course_without_feedback(course):
    services.delete_course(course.pk)
    assert not Course.objects.filter(pk=course.pk).exists()
