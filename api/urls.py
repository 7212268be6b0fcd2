"""API routes: versioned endpoints under /api/v1/ plus schema and docs."""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerSplitView
from rest_framework.routers import DefaultRouter

from .views import (
    CourseViewSet,
    FeedbackAdminViewSet,
    FeedbackViewSet,
    ProfilePictureViewSet,
    StudentAdminViewSet,
    dashboard,
    health,
    login_view,
    logout_view,
    me,
    my_stats,
    profile,
    register,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r"courses", CourseViewSet, basename="courses")
router.register(r"feedback", FeedbackViewSet, basename="feedback")
router.register(r"admin/students", StudentAdminViewSet, basename="admin-students")
router.register(r"admin/feedback", FeedbackAdminViewSet, basename="admin-feedback")

profile_picture = ProfilePictureViewSet.as_view({"post": "create", "delete": "destroy"})

v1 = [
    path("auth/register", register, name="auth-register"),
    path("auth/login", login_view, name="auth-login"),
    path("auth/logout", logout_view, name="auth-logout"),
    path("auth/me", me, name="auth-me"),
    path("users/profile", profile, name="users-profile"),
    path("users/profile/picture", profile_picture, name="users-profile-picture"),
    path("users/stats", my_stats, name="users-stats"),
    path("admin/dashboard", dashboard, name="admin-dashboard"),
    path("", include(router.urls)),
]

urlpatterns = [
    path("api/health", health, name="health"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    # Split view serves its init script separately so the page needs no inline JS.
    path("api/docs/", SpectacularSwaggerSplitView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/v1/", include(v1)),
]
