"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from api import dependencies
from adapter.mongodb.connection import get_mongodb_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def _check_user_store() -> dict:
    if dependencies.USER_STORE != dependencies.MONGODB_STORE:
        return {
            "status": "healthy",
            "backend": dependencies.USER_STORE,
            "message": "In-memory store",
        }

    try:
        mongo_client = get_mongodb_client()
        if mongo_client:
            mongo_client.admin.command('ping')
            return {"status": "healthy", "backend": "mongodb", "message": "Connection successful"}
        return {
            "status": "unhealthy",
            "backend": "mongodb",
            "message": "Connection failed or not configured",
        }
    except PyMongoError as e:
        logger.warning("MongoDB health check failed", extra={"error": str(e)[:200]})
        return {
            "status": "unhealthy",
            "backend": "mongodb",
            "message": f"Connection error: {str(e)[:200]}",
        }


@router.get("")
async def health():
    """Health check endpoint with user store status."""
    user_store = _check_user_store()
    healthy = user_store["status"] == "healthy"

    health_status = {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": {"user_store": user_store},
    }

    return JSONResponse(
        content=health_status,
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )
