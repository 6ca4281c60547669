# lead_intake/routes/health.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from lead_intake.core.config import Settings
from lead_intake.routes.deps import IntakeState

router = APIRouter(tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    timestamp: str
    dispatch_mode: Optional[str] = None
    row_store: Optional[str] = None
    enabled_buyers: List[str] = []
    error: Optional[str] = None


@router.get("/health", response_model=HealthCheckResponse)
async def health(request: Request) -> HealthCheckResponse:
    """Configuration summary. Never includes credentials or endpoint URLs."""
    state: IntakeState = request.app.state.intake
    settings: Settings = request.app.state.settings
    now = datetime.now(timezone.utc).isoformat()

    if state.startup_error is not None:
        return HealthCheckResponse(
            status="misconfigured",
            service=settings.service_name,
            environment=settings.environment,
            timestamp=now,
            error=state.startup_error.message,
        )

    return HealthCheckResponse(
        status="healthy",
        service=settings.service_name,
        environment=state.config.environment,
        timestamp=now,
        dispatch_mode=state.config.dispatch_mode.value,
        row_store=state.store.backend,
        enabled_buyers=state.config.enabled_buyer_names(),
    )
