from django.contrib import admin

from .models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name", "role", "is_blocked", "created_at")
    list_filter = ("role", "is_blocked")
    search_fields = ("user__email", "user__username", "name")
    readonly_fields = ("profile_picture", "profile_picture_id", "created_at", "updated_at")
