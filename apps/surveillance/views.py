from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django_ratelimit.decorators import ratelimit

from apps.authentication.context import context_from_request
from apps.core.pagination import ConflictLogPagination
from apps.sites.permissions import HasSiteReadAccess, HasSiteWriteAccess, site_access_for

from .serializers import (
    ConflictLogQuerySerializer,
    MetricsQuerySerializer,
    ResolveConflictSerializer,
    SessionConflictResolutionSerializer,
)
from .services import ConflictLogService, ConflictResolutionService, MetricsService


@api_view(["POST"])
@permission_classes([HasSiteWriteAccess])
@ratelimit(key="user_or_ip", rate="30/m", method="POST", block=False)
def resolve_conflict(request):
    """
    Merge sessions of the same site and month into one set of values
    Rate limited to 30 requests per minute per user

    POST /api/v1/sessions/resolve-conflict/
    {
        "sessionIds": [10, 11],
        "resolvedData": {"collectionMethod": "net"},
        "resolvedSurveillanceForm": {"numLlinsAvailable": 4}
    }
    """

    if getattr(request, "limited", False):
        return Response(
            {"error": "Rate limit exceeded", "detail": "Maximum 30 conflict resolutions per minute. Please try again later."},
            status=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    serializer = ResolveConflictSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = serializer.validated_data
    resolved_form = data.get("resolvedSurveillanceForm")

    result = ConflictResolutionService.resolve_conflict(
        session_ids=data["sessionIds"],
        resolved_data=dict(data["resolvedData"]),
        resolved_surveillance_form=dict(resolved_form) if resolved_form is not None else None,
        site_access=site_access_for(request),
        user_id=context_from_request(request).user_id,
    )

    return Response(
        {
            "message": "Conflict resolved successfully",
            "resolutionId": result["resolution_id"],
            "updatedSessionCount": result["updated_session_count"],
        },
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([HasSiteReadAccess])
def conflict_logs(request):
    """
    Conflict resolution audit trail, most recent first

    GET /api/v1/sessions/conflict-logs/?siteId=1&month=3&year=2024&sessionId=10&page=1&size=10
    """
    query = ConflictLogQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    filters = query.validated_data

    logs = ConflictLogService.get_conflict_logs(
        site_access=site_access_for(request),
        site_id=filters.get("siteId"),
        month=filters.get("month"),
        year=filters.get("year"),
        session_id=filters.get("sessionId"),
    )

    paginator = ConflictLogPagination()
    page = paginator.paginate_queryset(logs, request)
    return paginator.get_paginated_response(SessionConflictResolutionSerializer(page, many=True).data)


@api_view(["GET"])
@permission_classes([HasSiteReadAccess])
def metrics(request):
    """
    Site information and entomological summary for a district

    GET /api/v1/sessions/metrics/?district=Kampala&startDate=2024-03-01&endDate=2024-04-01
    """
    query = MetricsQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)

    result = MetricsService.get_metrics(
        district=query.validated_data["district"],
        start_date=query.validated_data["startDate"],
        end_date=query.validated_data["endDate"],
        site_access=site_access_for(request),
    )
    return Response(result)
