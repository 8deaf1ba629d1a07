from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, text

from workshop_registry.config import config
from workshop_registry.models.database import engine, get_redis

health = APIRouter(tags=["Health"])

SERVICE_NAME = "workshop-registry"


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
    }


@health.get("/health/detailed")
async def detailed_health_check(redis_client=Depends(get_redis)):
    """Detailed health check with database and dependency checks"""
    health_status = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config["environment"],
        "checks": {},
    }

    # Database connectivity check; registration cannot work without it
    try:
        with Session(engine) as session:
            result = session.exec(text("SELECT 1")).first()
            health_status["checks"]["database"] = "healthy" if result else "unhealthy"
            if not result:
                health_status["status"] = "unhealthy"
    except Exception as e:
        health_status["checks"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    # Redis only backs workshop drafts
    try:
        redis_client.ping()
        health_status["checks"]["redis"] = "healthy"
    except redis.RedisError as e:
        health_status["checks"]["redis"] = f"unhealthy: {str(e)}"
        if health_status["status"] == "healthy":
            health_status["status"] = "degraded"

    # Outbound integrations only degrade emails and suggestions
    missing = [
        key
        for key in ("anthropic_api_key", "mailgun_api_key", "mailgun_domain")
        if not config.get(key)
    ]
    health_status["checks"]["integrations"] = (
        f"missing: {', '.join(missing)}" if missing else "healthy"
    )

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
