"""Health check endpoints.

- /healthz: Liveness probe (is the process alive?)
- /readyz: Readiness probe (is the knowledge base indexed?)
- /health: Combined liveness and readiness
- /metrics: Prometheus metrics endpoint
"""

from typing import Any

from fastapi import APIRouter, Response, status
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["health"])


# Health status tracking
_ready: bool = False
_components: dict[str, bool] = {
    "knowledge_base": False,
    "llm": False,
    "web_search": False,
}

# Components that must be healthy before traffic is accepted
CRITICAL_COMPONENTS = ["knowledge_base"]


def set_ready(ready: bool) -> None:
    """Set overall readiness status."""
    global _ready
    _ready = ready


def set_component_health(component: str, healthy: bool) -> None:
    """Set health status for a specific component."""
    if component in _components:
        _components[component] = healthy


def get_component_health() -> dict[str, bool]:
    """Get health status of all components."""
    return _components.copy()


def _is_ready() -> bool:
    return _ready and all(_components.get(c, False) for c in CRITICAL_COMPONENTS)


@router.get("/healthz", response_model=dict[str, str])
async def healthz() -> dict[str, str]:
    """Liveness probe.

    Returns 200 if the process is alive.
    """
    return {"status": "alive"}


@router.get("/readyz")
async def readyz(response: Response) -> dict[str, Any]:
    """Readiness probe.

    Returns 200 once the knowledge base has been indexed.
    Returns 503 otherwise.
    """
    if _is_ready():
        return {
            "status": "ready",
            "components": _components,
        }

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "not_ready",
        "components": _components,
    }


@router.get("/health")
async def health(response: Response) -> dict[str, Any]:
    """Combined health endpoint.

    Provides both liveness and readiness information.
    """
    ready = _is_ready()
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if ready else "degraded",
        "ready": _ready,
        "components": _components,
    }


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
