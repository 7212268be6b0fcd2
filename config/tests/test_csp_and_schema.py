from __future__ import annotations

import pytest
from django.test import Client


@pytest.mark.django_db
def test_csp_header_present():
    r = Client().get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"
    assert "Content-Security-Policy" in r.headers
    assert r.headers["Cross-Origin-Opener-Policy"] == "same-origin"


@pytest.mark.django_db
def test_openapi_schema_available():
    r = Client().get("/api/schema/")
    assert r.status_code == 200
    body = r.content.decode("utf-8", errors="ignore")
    assert "openapi" in body.lower()
    assert "/api/v1/feedback/my-feedback" in body
    assert "/api/v1/admin/feedback/export" in body


@pytest.mark.django_db
def test_swagger_ui_served_with_relaxed_policy():
    r = Client().get("/api/docs/")
    assert r.status_code == 200
    assert "cdn.jsdelivr.net" in r.headers["Content-Security-Policy"]
