from __future__ import annotations

from rest_framework.exceptions import ValidationError
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


def _positive_int(raw: str, name: str, maximum: int | None = None) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 0
    if value < 1 or (maximum is not None and value > maximum):
        bound = f"between 1 and {maximum}" if maximum is not None else "a positive integer"
        raise ValidationError({name: [f"{name.capitalize()} must be {bound}"]})
    return value


class DefaultPagination(PageNumberPagination):
    """Page-number pagination with a client `limit`.

    - Default page size: 10 (matches settings)
    - `?limit=N` accepts 1..100; anything else is a 400, not a silent clamp
    - `?page=N` must be a positive integer; pages past the end are a 404
    """

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_page_size(self, request):
        raw = request.query_params.get(self.page_size_query_param)
        if raw is None:
            return self.page_size
        return _positive_int(raw, self.page_size_query_param, self.max_page_size)

    def paginate_queryset(self, queryset, request, view=None):
        raw = request.query_params.get(self.page_query_param)
        if raw is not None:
            _positive_int(raw, self.page_query_param)
        return super().paginate_queryset(queryset, request, view)

    def get_paginated_response(self, data):
        return Response(
            {
                "count": self.page.paginator.count,
                "total_pages": self.page.paginator.num_pages,
                "current_page": self.page.number,
                "next": self.get_next_link(),
                "previous": self.get_previous_link(),
                "results": data,
            }
        )

    def get_paginated_response_schema(self, schema):
        base = super().get_paginated_response_schema(schema)
        base["properties"]["total_pages"] = {"type": "integer", "example": 3}
        base["properties"]["current_page"] = {"type": "integer", "example": 1}
        return base
