"""Signals for automatic profile management.

On user creation, create a default `UserProfile` with the student role.
Admin accounts are promoted explicitly (see the `seed_demo` command and
`accounts.services.create_account`).
"""
from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import UserProfile, Role


@receiver(post_save, sender=User)
def create_user_profile(sender, instance: User, created: bool, **kwargs):  # noqa: D401
    """Create a profile for new users (default role: student)."""
    if created:
        name = (instance.get_full_name() or "").strip()
        UserProfile.objects.get_or_create(user=instance, defaults={"role": Role.STUDENT, "name": name})
