from __future__ import annotations

import pytest
from django.test import Client


@pytest.mark.django_db
def test_csp_has_expected_directives():
    r = Client().get("/api/health")
    csp = r.headers.get("Content-Security-Policy", "")
    assert csp
    # API responses never need inline code
    assert "'unsafe-inline'" not in csp
    # Profile pictures come from the image host CDN
    assert "img-src" in csp and "res.cloudinary.com" in csp
    assert "data:" in csp
    assert "frame-ancestors 'none'" in csp


@pytest.mark.django_db
def test_json_errors_also_carry_policy():
    r = Client().get("/api/v1/courses")
    assert r.status_code == 403
    assert "default-src 'self'" in r.headers["Content-Security-Policy"]
