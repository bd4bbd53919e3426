"""Liveness and readiness checks.

Readiness covers the two stores a request can touch: the record store
(every stage write and chain read) and the token-revocation store (every
authenticated request).  A node whose revocation store is down would reject
all logged-in traffic, so it reports not ready.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from herbtrace import __version__
from herbtrace.config import settings
from herbtrace.database import engine
from herbtrace.utils.redis import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_record_store() -> str | None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Record store not ready: %s", exc)
        return str(exc)[:100]
    return None


async def _check_revocation_store() -> str | None:
    try:
        client = await get_redis()
        await client.ping()
    except Exception as exc:
        logger.warning("Token revocation store not ready: %s", exc)
        return str(exc)[:100]
    return None


@router.get("/health")
async def health_check():
    """Liveness: the process is serving requests."""
    return {"status": "ok", "version": __version__, "environment": settings.environment}


@router.get("/health/ready")
async def readiness_check():
    """200 when both stores answer, 503 naming the one that does not."""
    failures = {
        "recordStore": await _check_record_store(),
        "revocationStore": await _check_revocation_store(),
    }
    ready = not any(failures.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not ready",
            "checks": {
                name: "ok" if error is None else f"error: {error}"
                for name, error in failures.items()
            },
        },
    )
