from __future__ import annotations

import logging

import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from accounts.models import Role
from courses.models import Course

PASSWORD = "Secr3t!pass"


@pytest.fixture(autouse=True)
def silence_django_request_logger():
    """Reduce noise from expected 4xx in passing tests.

    Many tests intentionally exercise 400/403/409 paths. Django logs these
    at WARNING via 'django.request'; lower that logger to ERROR meanwhile.
    """
    logger = logging.getLogger("django.request")
    old = logger.level
    logger.setLevel(logging.ERROR)
    try:
        yield
    finally:
        logger.setLevel(old)


@pytest.fixture
def make_user(db):
    def _make(email: str, role: str = Role.STUDENT, name: str = "", blocked: bool = False) -> User:
        user = User.objects.create_user(username=email, email=email, password=PASSWORD)
        user.profile.role = role
        user.profile.name = name or email.split("@")[0].title()
        user.profile.is_blocked = blocked
        user.profile.save(update_fields=["role", "name", "is_blocked"])
        return user

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@example.edu", role=Role.ADMIN, name="Ada Admin")


@pytest.fixture
def student(make_user):
    return make_user("sam@example.edu", name="Sam Student")


@pytest.fixture
def other_student(make_user):
    return make_user("olive@example.edu", name="Olive Other")


@pytest.fixture
def make_course(admin_user):
    def _make(code: str, name: str | None = None, **extra) -> Course:
        return Course.objects.create(name=name or f"Course {code}", code=code, created_by=admin_user, **extra)

    return _make


@pytest.fixture
def course(make_course):
    return make_course("CS101", "Introduction to Computing", instructor="Dr. Lee", department="Computing")


@pytest.fixture
def api_as():
    def _client(user=None) -> APIClient:
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client

    return _client
