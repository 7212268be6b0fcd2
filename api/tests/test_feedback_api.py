from __future__ import annotations

from datetime import timedelta

import pytest
from django.utils import timezone

from courses.models_feedback import Feedback

MESSAGE = "Well organised and practical."


def submit(client, course, **extra):
    payload = {"course": course.pk, "rating": 4, "message": MESSAGE, **extra}
    return client.post("/api/v1/feedback", payload, format="json")


@pytest.mark.django_db
def test_submit_feedback_returns_tagged_record(api_as, student, course):
    r = submit(api_as(student), course, rating=5, tags=["Labs"])
    assert r.status_code == 201
    body = r.json()
    assert body["tags"] == ["labs", "positive"]
    assert body["status"] == "approved"
    assert body["course"]["code"] == "CS101"
    assert body["student"]["id"] == student.pk


@pytest.mark.django_db
def test_duplicate_submission_returns_409(api_as, student, course):
    c = api_as(student)
    assert submit(c, course).status_code == 201
    r = submit(c, course, rating=1)
    assert r.status_code == 409
    assert r.json()["detail"] == "You have already submitted feedback for this course"
    assert Feedback.objects.count() == 1


@pytest.mark.django_db
def test_submit_to_inactive_course_is_400(api_as, student, make_course):
    closed = make_course("SHUT1", is_active=False)
    r = submit(api_as(student), closed)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot submit feedback for inactive course"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "extra",
    [{"rating": 0}, {"rating": 6}, {"message": "short"}, {"tags": "not-a-list"}, {"tags": ["x" * 51]}],
)
def test_submit_validation(api_as, student, course, extra):
    assert submit(api_as(student), course, **extra).status_code == 400


@pytest.mark.django_db
@pytest.mark.security
def test_admins_cannot_submit_feedback(api_as, admin_user, course):
    assert submit(api_as(admin_user), course).status_code == 403


@pytest.mark.django_db
@pytest.mark.security
def test_only_owner_reads_and_edits(api_as, student, other_student, admin_user, course):
    fb_id = submit(api_as(student), course).json()["id"]
    intruder = api_as(other_student)

    assert intruder.get(f"/api/v1/feedback/{fb_id}").status_code == 403
    assert intruder.patch(f"/api/v1/feedback/{fb_id}", {"rating": 1}, format="json").status_code == 403
    assert intruder.delete(f"/api/v1/feedback/{fb_id}").status_code == 403
    assert api_as(admin_user).get(f"/api/v1/feedback/{fb_id}").status_code == 200
    assert Feedback.objects.get(pk=fb_id).rating == 4


@pytest.mark.django_db
def test_owner_updates_rating_and_sentiment(api_as, student, course):
    c = api_as(student)
    fb_id = submit(c, course, rating=5).json()["id"]
    r = c.patch(f"/api/v1/feedback/{fb_id}", {"rating": 3}, format="json")
    assert r.status_code == 200
    assert r.json()["rating"] == 3
    assert r.json()["tags"] == ["neutral"]

    assert c.delete(f"/api/v1/feedback/{fb_id}").status_code == 204
    assert c.get(f"/api/v1/feedback/{fb_id}").status_code == 404


@pytest.mark.django_db
def test_my_feedback_paginates_and_sorts(api_as, student, make_course):
    c = api_as(student)
    for i, rating in enumerate([3, 5, 1]):
        submit(c, make_course(f"MY{i}"), rating=rating)

    r = c.get("/api/v1/feedback/my-feedback", {"sort_by": "rating", "sort_order": "asc", "limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 3
    assert body["total_pages"] == 2
    assert [row["rating"] for row in body["results"]] == [1, 3]

    second = c.get("/api/v1/feedback/my-feedback", {"sort_by": "rating", "sort_order": "asc", "limit": 2, "page": 2})
    assert [row["rating"] for row in second.json()["results"]] == [5]


@pytest.mark.django_db
def test_my_feedback_date_range(api_as, student, make_course):
    c = api_as(student)
    old_id = submit(c, make_course("OLD9")).json()["id"]
    submit(c, make_course("NEW9"))
    Feedback.objects.filter(pk=old_id).update(created_at=timezone.now() - timedelta(days=40))

    since = (timezone.now() - timedelta(days=7)).date().isoformat()
    r = c.get("/api/v1/feedback/my-feedback", {"start_date": since})
    assert [row["course"]["code"] for row in r.json()["results"]] == ["NEW9"]


@pytest.mark.django_db
def test_anonymous_author_hidden_from_other_readers(api_as, student, admin_user, course):
    fb_id = submit(api_as(student), course, is_anonymous=True).json()["id"]
    assert api_as(student).get(f"/api/v1/feedback/{fb_id}").json()["student"]["id"] == student.pk
    assert api_as(admin_user).get(f"/api/v1/feedback/{fb_id}").json()["student"] is None


@pytest.mark.django_db
def test_moderator_notes_visible_to_admins_only(api_as, student, admin_user, course):
    fb_id = submit(api_as(student), course).json()["id"]
    Feedback.objects.filter(pk=fb_id).update(moderator_notes="Checked by staff")

    own = api_as(student).get(f"/api/v1/feedback/{fb_id}").json()
    assert "moderator_notes" not in own
    listed = api_as(student).get("/api/v1/feedback/my-feedback").json()["results"][0]
    assert "moderator_notes" not in listed
    assert api_as(admin_user).get(f"/api/v1/feedback/{fb_id}").json()["moderator_notes"] == "Checked by staff"


@pytest.mark.django_db
def test_course_stats_endpoint(api_as, student, other_student, course):
    submit(api_as(student), course, rating=5)
    submit(api_as(other_student), course, rating=2)
    r = api_as(student).get(f"/api/v1/feedback/course/{course.pk}/stats")
    assert r.status_code == 200
    assert r.json()["stats"]["average_rating"] == 3.5
    assert api_as(student).get("/api/v1/feedback/course/999999/stats").status_code == 404


@pytest.mark.django_db
def test_student_stats_endpoint(api_as, student, admin_user, course):
    submit(api_as(student), course, rating=4)
    r = api_as(student).get("/api/v1/users/stats")
    assert r.status_code == 200
    assert r.json()["stats"]["total_feedback"] == 1
    assert api_as(admin_user).get("/api/v1/users/stats").status_code == 403
