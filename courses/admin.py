from django.contrib import admin

from .models import Course
from .models_feedback import Feedback


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "instructor", "department", "is_active", "created_at")
    list_filter = ("is_active", "department")
    search_fields = ("name", "code", "instructor", "department")


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ("course", "student", "rating", "status", "is_anonymous", "created_at")
    list_filter = ("status", "rating", "is_anonymous")
    search_fields = ("course__name", "course__code", "student__email", "message")
    readonly_fields = ("tags", "created_at", "updated_at")
