import math

from django.conf import settings
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

from .exceptions import ValidationError


class StandardResultsSetPagination(BasePagination):
    """
    page/size pagination with a computed page count

    Query params: ?page=1&size=10
    Pages past the end return an empty list rather than a 404.
    """

    page_query_param = "page"
    page_size_query_param = "size"
    max_page_size = 100
    results_key = "results"

    def get_page_size(self, request):
        return self._parse(request, self.page_size_query_param, settings.REST_FRAMEWORK.get("PAGE_SIZE", 10), maximum=self.max_page_size)

    def get_page_number(self, request):
        return self._parse(request, self.page_query_param, 1)

    def _parse(self, request, name, default, maximum=None):
        raw = request.query_params.get(name)
        if raw in (None, ""):
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"'{name}' must be an integer")
        if value < 1:
            raise ValidationError(f"'{name}' must be at least 1")
        if maximum is not None and value > maximum:
            raise ValidationError(f"'{name}' must be at most {maximum}")
        return value

    def paginate_queryset(self, queryset, request, view=None):
        self.page = self.get_page_number(request)
        self.size = self.get_page_size(request)
        self.total_items = queryset.count()

        offset = (self.page - 1) * self.size
        return list(queryset[offset : offset + self.size])

    def get_paginated_response(self, data):
        return Response(
            {
                self.results_key: data,
                "pagination": {
                    "page": self.page,
                    "size": self.size,
                    "totalPages": math.ceil(self.total_items / self.size),
                    "totalItems": self.total_items,
                },
            }
        )


class ConflictLogPagination(StandardResultsSetPagination):
    results_key = "logs"
