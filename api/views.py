"""REST API v1 viewsets and endpoints.

Views validate request shape with serializers and hand plain values to
the service modules; service errors become responses in
`api.exceptions.service_exception_handler`.
"""
from __future__ import annotations

import io
import logging
import tempfile

from django.contrib.auth import get_user_model, logout
from django.http import FileResponse
from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes, throttle_classes
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from accounts import services as accounts
from accounts.image_host import get_image_host
from courses import lifecycle, services as course_services, statistics
from courses.exports import feedback_rows, write_feedback_csv
from courses.models import Course
from courses.models_feedback import Feedback

from .filters import CourseFilter, FeedbackFilter, StudentFilter, student_queryset
from .permissions import IsActiveUser, IsAdmin, IsStudent
from .serializers import (
    CourseSerializer,
    FeedbackCreateSerializer,
    FeedbackSerializer,
    FeedbackUpdateSerializer,
    LoginSerializer,
    ModerationSerializer,
    PictureUploadSerializer,
    ProfileUpdateSerializer,
    RatingSummarySerializer,
    RegisterSerializer,
    StudentSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


class LoginRateThrottle(AnonRateThrottle):
    scope = "login"


def _user_payload(request, user) -> dict:
    user = User.objects.select_related("profile").get(pk=user.pk)
    return UserSerializer(user, context={"request": request}).data


# --- Health -----------------------------------------------------------------


@extend_schema(responses={200: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    return Response({"status": "OK", "timestamp": timezone.now().isoformat()})


# --- Auth -------------------------------------------------------------------


@extend_schema(request=RegisterSerializer, responses={201: UserSerializer})
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([AnonRateThrottle])
def register(request):
    """Create a student account and start a session for it."""
    serializer = RegisterSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = accounts.create_account(**serializer.validated_data)
    accounts.sign_in(request, email=user.email, password=serializer.validated_data["password"])
    return Response({"user": _user_payload(request, user)}, status=status.HTTP_201_CREATED)


@extend_schema(request=LoginSerializer, responses={200: UserSerializer})
@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    serializer = LoginSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = accounts.sign_in(request, **serializer.validated_data)
    return Response({"user": _user_payload(request, user)})


@extend_schema(request=None, responses={200: dict})
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def logout_view(request):
    logout(request)
    return Response({"detail": "Logged out successfully"})


@extend_schema(responses={200: UserSerializer})
@api_view(["GET"])
def me(request):
    return Response({"user": _user_payload(request, request.user)})


# --- Own profile ------------------------------------------------------------


@extend_schema(methods=["GET"], responses={200: UserSerializer})
@extend_schema(methods=["PUT", "PATCH"], request=ProfileUpdateSerializer, responses={200: UserSerializer})
@api_view(["GET", "PUT", "PATCH"])
def profile(request):
    if request.method != "GET":
        serializer = ProfileUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        accounts.update_profile(request.user, **serializer.validated_data)
    return Response({"user": _user_payload(request, request.user)})


class ProfilePictureViewSet(viewsets.ViewSet):
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(request=PictureUploadSerializer, responses={200: dict})
    def create(self, request):
        serializer = PictureUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = accounts.set_profile_picture(
            request.user, serializer.validated_data["profile_picture"], get_image_host()
        )
        return Response({"detail": "Profile picture uploaded successfully", "profile_picture": updated.profile_picture})

    @extend_schema(responses={204: None})
    def destroy(self, request):
        accounts.remove_profile_picture(request.user, get_image_host())
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(responses={200: RatingSummarySerializer})
@api_view(["GET"])
@permission_classes([IsStudent])
def my_stats(request):
    return Response({"stats": statistics.user_feedback_statistics(request.user.pk)})


# --- Courses ----------------------------------------------------------------


class CourseViewSet(viewsets.ModelViewSet):
    """Course catalogue: readable by any signed-in user, managed by admins."""

    queryset = Course.objects.select_related("created_by__profile").all()
    serializer_class = CourseSerializer
    filterset_class = CourseFilter
    pagination_class = None
    lookup_value_regex = r"\d+"
    http_method_names = ["get", "post", "put", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action in ("list", "retrieve"):
            return [IsActiveUser()]
        return [IsAdmin()]

    def retrieve(self, request, *args, **kwargs):
        course = course_services.get_course(kwargs["pk"])
        data = self.get_serializer(course).data
        data["statistics"] = statistics.course_statistics(course.pk)
        return Response(data)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        course = course_services.create_course(request.user, **serializer.validated_data)
        return Response(self.get_serializer(course).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data, partial=kwargs.pop("partial", False))
        serializer.is_valid(raise_exception=True)
        course = course_services.update_course(kwargs["pk"], **serializer.validated_data)
        return Response(self.get_serializer(course).data)

    def destroy(self, request, *args, **kwargs):
        course_services.delete_course(kwargs["pk"])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: CourseSerializer})
    @action(detail=True, methods=["patch"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        course = course_services.toggle_course_active(pk)
        return Response(self.get_serializer(course).data)


# --- Feedback ---------------------------------------------------------------


class FeedbackViewSet(viewsets.GenericViewSet):
    """Student feedback: submit, list own, read, edit and delete."""

    queryset = Feedback.objects.select_related("course", "student__profile")
    serializer_class = FeedbackSerializer
    filterset_class = FeedbackFilter
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action in ("create", "my_feedback"):
            return [IsStudent()]
        return [IsActiveUser()]

    @extend_schema(request=FeedbackCreateSerializer, responses={201: FeedbackSerializer})
    def create(self, request):
        serializer = FeedbackCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        feedback = lifecycle.submit_feedback(request.user, data.pop("course"), **data)
        return Response(self.get_serializer(feedback).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        feedback = lifecycle.get_feedback_for(request.user, pk)
        return Response(self.get_serializer(feedback).data)

    @extend_schema(request=FeedbackUpdateSerializer, responses={200: FeedbackSerializer})
    def update(self, request, pk=None):
        serializer = FeedbackUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        feedback = lifecycle.update_feedback(request.user, pk, **serializer.validated_data)
        return Response(self.get_serializer(feedback).data)

    @extend_schema(request=FeedbackUpdateSerializer, responses={200: FeedbackSerializer})
    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        lifecycle.delete_feedback(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="my-feedback")
    def my_feedback(self, request):
        qs = self.filter_queryset(self.get_queryset().filter(student=request.user))
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    @extend_schema(responses={200: RatingSummarySerializer})
    @action(detail=False, methods=["get"], url_path=r"course/(?P<course_id>\d+)/stats")
    def course_stats(self, request, course_id=None):
        return Response({"stats": statistics.course_statistics(course_id)})


# --- Admin ------------------------------------------------------------------


@extend_schema(responses={200: dict})
@api_view(["GET"])
@permission_classes([IsAdmin])
def dashboard(request):
    return Response(statistics.admin_dashboard())


class StudentAdminViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Admin view of student accounts with their feedback counts."""

    serializer_class = StudentSerializer
    filterset_class = StudentFilter
    permission_classes = [IsAdmin]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return student_queryset()

    def destroy(self, request, pk=None):
        accounts.delete_student(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: StudentSerializer})
    @action(detail=True, methods=["patch"], url_path="toggle-block")
    def toggle_block(self, request, pk=None):
        accounts.toggle_block(request.user, pk)
        return Response(self.get_serializer(student_queryset().get(pk=pk)).data)


class FeedbackAdminViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Admin listing, statistics, moderation and CSV export of feedback.

    Listing, statistics and export accept the same filter parameters.
    """

    queryset = Feedback.objects.select_related("course", "student__profile")
    serializer_class = FeedbackSerializer
    filterset_class = FeedbackFilter
    permission_classes = [IsAdmin]
    lookup_value_regex = r"\d+"

    @extend_schema(responses={200: RatingSummarySerializer})
    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response({"stats": statistics.summarize(self.filter_queryset(self.get_queryset()))})

    @extend_schema(request=ModerationSerializer, responses={200: FeedbackSerializer})
    @action(detail=True, methods=["patch"])
    def moderate(self, request, pk=None):
        serializer = ModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        feedback = lifecycle.moderate_feedback(pk, **serializer.validated_data)
        return Response(self.get_serializer(feedback).data)

    @extend_schema(responses={(200, "text/csv"): OpenApiTypes.BINARY})
    @action(detail=False, methods=["get"])
    def export(self, request):
        """Stream the filtered feedback as a CSV download.

        Rows are written to an anonymous temporary file first; the response
        closes (and so removes) it once streaming ends.
        """
        qs = self.filter_queryset(self.get_queryset())
        handle = tempfile.TemporaryFile()
        try:
            text = io.TextIOWrapper(handle, encoding="utf-8", newline="")
            count = write_feedback_csv(feedback_rows(qs), text)
            text.flush()
            text.detach()
            handle.seek(0)
        except Exception:
            handle.close()
            raise
        filename = f"feedback-export-{timezone.now():%Y-%m-%d}.csv"
        logger.info("Feedback export of %s rows by admin %s", count, request.user.pk)
        return FileResponse(handle, as_attachment=True, filename=filename, content_type="text/csv")
