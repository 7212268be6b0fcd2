"""Account operations: sign-up, sign-in, profiles and admin moderation.

Views call these with plain values; errors are raised as the shared
service exceptions from `courses.exceptions`.
"""
from __future__ import annotations

import logging
import uuid
from io import BytesIO

from django.conf import settings
from django.contrib.auth import authenticate, login
from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.utils.dateparse import parse_date
from PIL import Image, ImageOps, UnidentifiedImageError

from courses.exceptions import (
    Conflict,
    DependentRecordsExist,
    Forbidden,
    InvalidCredentials,
    InvalidState,
    NotFound,
    UploadFailed,
    ValidationFailed,
)
from courses.models_feedback import Feedback

from .image_host import ImageHostClient
from .models import Role, UserProfile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email", "phone", "date_of_birth", "address")
DUPLICATE_EMAIL = "User already exists with this email"
BLOCKED_MESSAGE = "Account has been blocked. Please contact administrator."


def _email_taken(email: str, exclude_pk=None) -> bool:
    qs = User.objects.filter(email__iexact=email)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


def create_account(*, email: str, password: str, name: str, role: str = Role.STUDENT) -> User:
    """Create a user with a profile; the username mirrors the e-mail."""
    email = (email or "").strip().lower()
    name = (name or "").strip()
    if not email:
        raise ValidationFailed("Validation failed", {"email": ["Please provide a valid email"]})
    if _email_taken(email):
        raise Conflict(DUPLICATE_EMAIL)
    try:
        validate_password(password, User(username=email, email=email))
    except ValidationError as exc:
        raise ValidationFailed("Validation failed", {"password": list(exc.messages)}) from exc

    try:
        with transaction.atomic():
            user = User.objects.create_user(username=email, email=email, password=password)
            profile = user.profile
            profile.name = name
            profile.role = role
            profile.full_clean(exclude=["user"])
            profile.save(update_fields=["name", "role", "updated_at"])
    except ValidationError as exc:
        raise ValidationFailed("Validation failed", exc.message_dict) from exc
    except IntegrityError as exc:
        raise Conflict(DUPLICATE_EMAIL) from exc
    logger.info("Account %s created with role %s", user.pk, role)
    return user


def sign_in(request, *, email: str, password: str) -> User:
    """Authenticate and start a session; blocked accounts are refused."""
    email = (email or "").strip().lower()
    user = authenticate(request, username=email, password=password)
    if user is None:
        raise InvalidCredentials("Invalid credentials")
    profile = getattr(user, "profile", None)
    if profile is not None and profile.is_blocked:
        logger.warning("Blocked user %s attempted to sign in", user.pk)
        raise Forbidden(BLOCKED_MESSAGE)
    login(request, user)
    return user


def update_profile(user: User, **fields) -> UserProfile:
    """Update own profile details; omitted fields are left as they are."""
    unknown = sorted(set(fields) - set(PROFILE_FIELDS))
    if unknown:
        raise ValidationFailed(f"Cannot update field(s): {', '.join(unknown)}")
    profile = user.profile

    email = fields.pop("email", None)
    if email is not None:
        email = email.strip().lower()
        if _email_taken(email, exclude_pk=user.pk):
            raise Conflict("This email is already in use")

    for field, value in fields.items():
        if field == "date_of_birth" and isinstance(value, str):
            parsed = parse_date(value) if value else None
            if value and parsed is None:
                raise ValidationFailed("Validation failed", {"date_of_birth": ["Please provide a valid date"]})
            value = parsed
        elif isinstance(value, str):
            value = value.strip()
        setattr(profile, field, value)

    try:
        profile.full_clean(exclude=["user"])
    except ValidationError as exc:
        raise ValidationFailed("Validation failed", exc.message_dict) from exc

    with transaction.atomic():
        if email is not None and email != user.email:
            user.email = email
            user.username = email
            user.save(update_fields=["email", "username"])
        profile.save()
    logger.info("Profile of user %s updated", user.pk)
    return profile


def prepare_picture(upload) -> bytes:
    """Validate an uploaded image and return it as a square PNG."""
    content_type = getattr(upload, "content_type", "") or ""
    if not content_type.startswith("image/"):
        raise ValidationFailed("Only image files are allowed")
    if upload.size > settings.PROFILE_PICTURE_MAX_BYTES:
        limit_mb = settings.PROFILE_PICTURE_MAX_BYTES // (1024 * 1024)
        raise ValidationFailed(f"Image must be {limit_mb} MB or smaller")

    edge = settings.PROFILE_PICTURE_SIZE
    try:
        with Image.open(upload) as original:
            img = ImageOps.exif_transpose(original)
            img = img.convert("RGBA") if img.mode not in ("RGB", "RGBA") else img
            img = ImageOps.fit(img, (edge, edge))
            buf = BytesIO()
            img.save(buf, format="PNG", optimize=True)
    except (UnidentifiedImageError, OSError) as exc:
        raise ValidationFailed("Invalid image file") from exc
    return buf.getvalue()


def _discard_picture(host: ImageHostClient, public_id: str) -> None:
    try:
        host.destroy(public_id)
    except UploadFailed:
        logger.warning("Failed to delete profile picture %s", public_id, exc_info=True)


def set_profile_picture(user: User, upload, host: ImageHostClient) -> UserProfile:
    """Upload a new picture, then drop the one it replaces.

    A failed upload leaves the profile untouched. Removing the previous
    image is best effort.
    """
    data = prepare_picture(upload)
    profile = user.profile
    previous_id = profile.profile_picture_id
    image = host.upload(data, f"user_{user.pk}_{uuid.uuid4().hex[:8]}")

    profile.profile_picture = image.url
    profile.profile_picture_id = image.public_id
    profile.save(update_fields=["profile_picture", "profile_picture_id", "updated_at"])
    if previous_id and previous_id != image.public_id:
        _discard_picture(host, previous_id)
    logger.info("Profile picture of user %s replaced", user.pk)
    return profile


def remove_profile_picture(user: User, host: ImageHostClient) -> UserProfile:
    profile = user.profile
    if not profile.profile_picture:
        raise InvalidState("No profile picture to delete")
    if profile.profile_picture_id:
        _discard_picture(host, profile.profile_picture_id)
    profile.profile_picture = None
    profile.profile_picture_id = ""
    profile.save(update_fields=["profile_picture", "profile_picture_id", "updated_at"])
    logger.info("Profile picture of user %s removed", user.pk)
    return profile


def _get_student(admin: User, user_id, verb: str) -> User:
    target = User.objects.select_related("profile").filter(pk=user_id).first()
    if target is None:
        raise NotFound("Student not found")
    if getattr(getattr(target, "profile", None), "role", None) != Role.STUDENT:
        raise InvalidState(f"Can only {verb} students")
    if target.pk == admin.pk:
        raise InvalidState(f"Cannot {verb.split('/')[0]} yourself")
    return target


def toggle_block(admin: User, user_id) -> UserProfile:
    """Flip a student's block flag and return their profile."""
    profile = _get_student(admin, user_id, "block/unblock").profile
    profile.is_blocked = not profile.is_blocked
    profile.save(update_fields=["is_blocked", "updated_at"])
    logger.info("Student %s %s by admin %s", user_id, "blocked" if profile.is_blocked else "unblocked", admin.pk)
    return profile


def _dependents_error(count: int) -> DependentRecordsExist:
    return DependentRecordsExist(
        f"Cannot delete student. They have {count} feedback entries. Consider blocking instead.",
        count,
    )


def delete_student(admin: User, user_id) -> None:
    """Delete a student account that has never left feedback."""
    student = _get_student(admin, user_id, "delete")
    count = Feedback.objects.filter(student=student).count()
    if count:
        raise _dependents_error(count)
    try:
        student.delete()
    except ProtectedError as exc:
        raise _dependents_error(len(exc.protected_objects)) from exc
    logger.info("Student %s deleted by admin %s", user_id, admin.pk)
