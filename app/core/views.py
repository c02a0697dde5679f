"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the chat domain but are
essential for running the service, such as health checks.
"""

from django.http import JsonResponse

from core.db import check_database


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Used by Docker health checks, Kubernetes probes and load balancers.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"

    HTTP Status Codes:
        200: All systems operational
        503: Database unreachable
    """
    if check_database():
        return JsonResponse({"status": "healthy", "database": "connected"})

    return JsonResponse(
        {"status": "unhealthy", "database": "disconnected"},
        status=503,
    )
