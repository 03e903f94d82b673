"""
Infrastructure endpoints that sit outside the marketplace domain.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for Docker, load balancers and uptime monitors.

    Reports database, cache and channel layer connectivity. Only the
    database is critical: a missing cache or channel layer degrades
    real-time delivery but the REST API still works.

    HTTP Status Codes:
        200: Database reachable
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception as e:
        logger.warning(f"Health check cache failure: {e}")
        health_status["cache"] = "disconnected"

    channel_layer = get_channel_layer()
    if channel_layer is None:
        health_status["channel_layer"] = "not_configured"
    else:
        try:
            async_to_sync(channel_layer.new_channel)()
            health_status["channel_layer"] = "connected"
        except Exception as e:
            logger.warning(f"Health check channel layer failure: {e}")
            health_status["channel_layer"] = "disconnected"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
