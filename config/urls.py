"""URL routing for the course feedback platform.

Admin site, the versioned REST API, OpenAPI schema/docs and a health check.
"""
from django.contrib import admin
from django.urls import include, path


urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("api.urls")),
]
