from __future__ import annotations

import pytest
from django.contrib.auth.models import User
from django.test import Client

from accounts.models import Role


@pytest.mark.django_db
@pytest.mark.security
def test_session_post_without_csrf_is_rejected():
    admin = User.objects.create_user(username="csrf@example.edu", email="csrf@example.edu", password="Pw0rd!pass")
    admin.profile.role = Role.ADMIN; admin.profile.save(update_fields=["role"])
    c = Client(enforce_csrf_checks=True); assert c.login(username="csrf@example.edu", password="Pw0rd!pass")
    # Session-authenticated unsafe request without a token
    r = c.post("/api/v1/courses", {"name": "No Token", "code": "NT1"}, content_type="application/json")
    assert r.status_code == 403
    assert "CSRF" in r.json()["detail"]


@pytest.mark.django_db
@pytest.mark.security
def test_student_and_anon_cannot_list_students():
    s = User.objects.create_user(username="std@example.edu", email="std@example.edu", password="Pw0rd!pass")
    cs = Client(); assert cs.login(username="std@example.edu", password="Pw0rd!pass")
    assert cs.get("/api/v1/admin/students").status_code == 403
    assert Client().get("/api/v1/admin/students").status_code == 403
