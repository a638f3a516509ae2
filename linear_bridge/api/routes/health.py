from fastapi import APIRouter, HTTPException
from linear_bridge.core.config import settings
from datetime import datetime, timezone
import httpx
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

VIEWER_QUERY = "query HealthCheck { viewer { id } }"


@router.get("/health")
async def health_check():
    """Comprehensive health check endpoint."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENV,
        "service": settings.APP_NAME,
        "checks": {}
    }

    # Check Linear connectivity and credentials
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            response = await client.post(
                settings.LINEAR_API_URL,
                headers={"Authorization": settings.LINEAR_API_KEY},
                json={"query": VIEWER_QUERY},
            )
        body = response.json() if response.status_code == 200 else {}
        if response.status_code == 200 and not body.get("errors"):
            health_status["checks"]["linear"] = {"status": "healthy", "message": "Connected"}
        elif response.status_code == 200:
            health_status["checks"]["linear"] = {"status": "degraded", "message": "GraphQL errors"}
        else:
            health_status["checks"]["linear"] = {"status": "degraded", "message": f"HTTP {response.status_code}"}
    except Exception as e:
        logger.warning(f"Linear health check failed: {e}")
        health_status["checks"]["linear"] = {"status": "unhealthy", "message": str(e)}

    if health_status["checks"]["linear"]["status"] != "healthy":
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/ready")
async def readiness_check():
    """Readiness probe for Kubernetes/container orchestration."""
    if not settings.LINEAR_API_KEY or not settings.LINEAR_API_URL:
        logger.error("Readiness check failed: missing Linear configuration")
        raise HTTPException(status_code=503, detail="Service not ready: missing configuration")
    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Liveness probe for Kubernetes/container orchestration."""
    return {"status": "alive"}
