"""django-filter filtersets for the list endpoints.

Invalid parameter values surface as 400 responses: DjangoFilterBackend
raises for bound filtersets with errors. The admin statistics and export
actions go through the same backend via `filter_queryset`.
"""
from __future__ import annotations

import django_filters
from django.contrib.auth.models import User
from django.db.models import Count, Q

from accounts.models import Role
from courses.models import Course
from courses.models_feedback import Feedback, FeedbackStatus

SORT_ORDERS = (("asc", "asc"), ("desc", "desc"))


class SortedFilterSet(django_filters.FilterSet):
    """FilterSet with `sort_by`/`sort_order` parameters.

    Subclasses map public sort keys to ORM fields in `sort_fields`; the
    primary key breaks ties in the same direction.
    """

    sort_fields: dict[str, str] = {}
    default_sort = "createdAt"

    sort_order = django_filters.ChoiceFilter(choices=SORT_ORDERS, method="skip")

    def skip(self, queryset, name, value):
        return queryset

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        field = self.sort_fields[self.form.cleaned_data.get("sort_by") or self.default_sort]
        if (self.form.cleaned_data.get("sort_order") or "desc") == "desc":
            return queryset.order_by(f"-{field}", "-pk")
        return queryset.order_by(field, "pk")


class FeedbackFilter(SortedFilterSet):
    course = django_filters.NumberFilter(field_name="course_id")
    student = django_filters.NumberFilter(field_name="student_id")
    rating = django_filters.ChoiceFilter(choices=[(str(i), str(i)) for i in range(1, 6)])
    status = django_filters.ChoiceFilter(choices=FeedbackStatus.choices)
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    sort_by = django_filters.ChoiceFilter(
        choices=(("createdAt", "createdAt"), ("rating", "rating"), ("course", "course")), method="skip"
    )

    sort_fields = {"createdAt": "created_at", "rating": "rating", "course": "course__name"}

    class Meta:
        model = Feedback
        fields = ["course", "student", "rating", "status", "start_date", "end_date"]


class StudentFilter(SortedFilterSet):
    search = django_filters.CharFilter(method="filter_search")
    status = django_filters.ChoiceFilter(
        choices=(("active", "active"), ("blocked", "blocked"), ("all", "all")), method="filter_status"
    )
    sort_by = django_filters.ChoiceFilter(
        choices=(("name", "name"), ("email", "email"), ("createdAt", "createdAt"), ("lastLogin", "lastLogin")),
        method="skip",
    )

    sort_fields = {
        "name": "profile__name",
        "email": "email",
        "createdAt": "profile__created_at",
        "lastLogin": "last_login",
    }

    class Meta:
        model = User
        fields = ["search", "status"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(Q(profile__name__icontains=value) | Q(email__icontains=value))

    def filter_status(self, queryset, name, value):
        if value == "active":
            return queryset.filter(profile__is_blocked=False)
        if value == "blocked":
            return queryset.filter(profile__is_blocked=True)
        return queryset


class CourseFilter(django_filters.FilterSet):
    active = django_filters.BooleanFilter(field_name="is_active")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Course
        fields = ["active", "search"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value)
            | Q(code__icontains=value)
            | Q(instructor__icontains=value)
            | Q(department__icontains=value)
        )


def student_queryset():
    return (
        User.objects.select_related("profile")
        .filter(profile__role=Role.STUDENT)
        .annotate(feedback_count=Count("feedback"))
    )
