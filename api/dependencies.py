"""
API dependencies.
"""
from fastapi import HTTPException, Request, status

from application.services.payment_orchestrator import PaymentOrchestrator


async def get_orchestrator(request: Request) -> PaymentOrchestrator:
    """Orchestrator built at startup; 503 when no provider is enabled."""
    orchestrator = getattr(request.app.state, "payments", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No payment provider is configured",
        )
    return orchestrator
