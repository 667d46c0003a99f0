"""
Health endpoints: shallow liveness and per-adapter readiness checks.
"""
from fastapi import APIRouter, Depends
from starlette.status import HTTP_200_OK

from finder import __version__
from finder.api.deps import get_finder
from finder.core.operations import Finder

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", status_code=HTTP_200_OK)
async def health() -> dict:
    """Shallow health endpoint."""
    return {"status": "ok", "version": __version__}


@router.get("/adapters", status_code=HTTP_200_OK)
async def health_adapters(finder: Finder = Depends(get_finder)) -> dict:
    """Run `health_check` on every registered storage adapter."""
    checks = []
    for adapter in finder.registry:
        result = await adapter.health_check()
        checks.append(result)

    all_healthy = all(check["healthy"] for check in checks)
    result = {
        "status": "ready" if checks and all_healthy else "degraded",
        "adapters": {
            "total": len(checks),
            "healthy": sum(1 for c in checks if c["healthy"]),
            "unhealthy": sum(1 for c in checks if not c["healthy"]),
            "checks": checks,
        },
    }

    if not all_healthy:
        result["warnings"] = [
            f"Adapter {c['adapter']}: {c['message']}" for c in checks if not c["healthy"]
        ]

    return result
