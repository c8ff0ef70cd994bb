"""FastAPI dependencies."""

from fastapi import HTTPException, Request, status

from cotrix.discovery.orchestrator import DiscoveryOrchestrator


async def get_orchestrator(request: Request) -> DiscoveryOrchestrator:
    """Dependency returning the process-wide discovery orchestrator."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Discovery engine not initialized",
        )
    return orchestrator
