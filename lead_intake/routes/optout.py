# lead_intake/routes/optout.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from lead_intake.schemas.errors import ErrorResponse
from lead_intake.schemas.optout import OptOutRequest, OptOutResponse
from lead_intake.services.optout import record_opt_out
from lead_intake.routes.deps import IntakeState, get_intake_state

router = APIRouter()


@router.post(
    "/optout",
    response_model=OptOutResponse,
    summary="Record a do-not-sell / opt-out request",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def submit_opt_out(
    body: OptOutRequest,
    state: IntakeState = Depends(get_intake_state),
) -> OptOutResponse:
    await record_opt_out(
        body.model_dump(),
        store=state.store,
        config=state.config,
        suppression=state.orchestrator.suppression,
    )
    return OptOutResponse()
