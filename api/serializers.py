"""Serializers for REST API v1.

Input serializers only check shape and types; business rules (uniqueness,
ownership, state) live in the service modules. Output serializers are
role-aware where anonymity applies.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from courses.lifecycle import MAX_TAGS, MESSAGE_MAX_LENGTH, TAG_MAX_LENGTH
from courses.models import Course
from courses.models_feedback import Feedback, FeedbackStatus

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Public profile of a user, flattened from `User` and `UserProfile`."""

    name = serializers.CharField(source="profile.name", read_only=True)
    role = serializers.CharField(source="profile.role", read_only=True)
    phone = serializers.CharField(source="profile.phone", read_only=True)
    date_of_birth = serializers.DateField(source="profile.date_of_birth", read_only=True)
    address = serializers.CharField(source="profile.address", read_only=True)
    age = serializers.IntegerField(source="profile.age", read_only=True)
    profile_picture = serializers.URLField(source="profile.profile_picture", read_only=True)
    is_blocked = serializers.BooleanField(source="profile.is_blocked", read_only=True)
    created_at = serializers.DateTimeField(source="profile.created_at", read_only=True)

    class Meta:
        model = User
        fields = (
            "id",
            "name",
            "email",
            "role",
            "phone",
            "date_of_birth",
            "address",
            "age",
            "profile_picture",
            "is_blocked",
            "last_login",
            "created_at",
        )
        read_only_fields = fields


class StudentSerializer(UserSerializer):
    feedback_count = serializers.IntegerField(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ("feedback_count",)
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="profile.name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "name", "email")
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=50)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True, trim_whitespace=False)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=50, required=False)
    email = serializers.EmailField(required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    address = serializers.CharField(max_length=200, required=False, allow_blank=True)


class PictureUploadSerializer(serializers.Serializer):
    profile_picture = serializers.FileField()


class CourseSerializer(serializers.ModelSerializer):
    # Plain fields: the service upper-cases the code and reports clashes as 409.
    name = serializers.CharField(min_length=2, max_length=100)
    code = serializers.CharField(min_length=2, max_length=20)
    created_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Course
        fields = (
            "id",
            "name",
            "code",
            "description",
            "instructor",
            "department",
            "credits",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = ("created_by", "created_at", "updated_at")


class CourseSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Course
        fields = ("id", "name", "code", "instructor", "department")
        read_only_fields = fields


class FeedbackSerializer(serializers.ModelSerializer):
    """Feedback as shown to a reader.

    The author is withheld on anonymous feedback unless the reader wrote it.
    Moderator notes are only shown to admins.
    """

    course = CourseSummarySerializer(read_only=True)
    student = serializers.SerializerMethodField()

    class Meta:
        model = Feedback
        fields = (
            "id",
            "course",
            "student",
            "rating",
            "message",
            "is_anonymous",
            "tags",
            "status",
            "moderator_notes",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields

    def get_student(self, obj) -> dict | None:
        request = self.context.get("request")
        viewer_id = getattr(getattr(request, "user", None), "pk", None)
        if obj.is_anonymous and obj.student_id != viewer_id:
            return None
        return UserSummarySerializer(obj.student).data

    def to_representation(self, instance):
        data = super().to_representation(instance)
        request = self.context.get("request")
        profile = getattr(getattr(request, "user", None), "profile", None)
        if not getattr(profile, "is_admin", False):
            data.pop("moderator_notes", None)
        return data


class FeedbackUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    message = serializers.CharField(max_length=MESSAGE_MAX_LENGTH, required=False)
    is_anonymous = serializers.BooleanField(required=False)
    tags = serializers.ListField(
        child=serializers.CharField(max_length=TAG_MAX_LENGTH), max_length=MAX_TAGS, required=False
    )


class FeedbackCreateSerializer(FeedbackUpdateSerializer):
    course = serializers.IntegerField(min_value=1)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    message = serializers.CharField(max_length=MESSAGE_MAX_LENGTH)


class ModerationSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=FeedbackStatus.choices)
    moderator_notes = serializers.CharField(max_length=500, required=False, allow_blank=True)


class RatingSummarySerializer(serializers.Serializer):
    total_feedback = serializers.IntegerField()
    average_rating = serializers.FloatField()
    rating_distribution = serializers.DictField(child=serializers.IntegerField())
