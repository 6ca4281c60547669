# lead_intake/routes/leads.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from lead_intake.core.exceptions import DependencyError, ValidationError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.schemas.errors import ErrorResponse
from lead_intake.schemas.lead import LeadIntakeResponse, LeadSubmission
from lead_intake.services.intake import IntakeOrchestrator
from lead_intake.services.lead_builder import RequestMetadata
from lead_intake.routes.deps import get_orchestrator

router = APIRouter()


@router.post(
    "/lead",
    response_model=LeadIntakeResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Submit a consumer lead",
    responses={
        400: {"model": ErrorResponse},
        405: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def submit_lead(
    submission: LeadSubmission,
    request: Request,
    orchestrator: IntakeOrchestrator = Depends(get_orchestrator),
) -> LeadIntakeResponse:
    logger = get_structlog_logger(__name__).bind(route="/lead", action="submit")

    metadata = RequestMetadata.from_headers(
        request.headers,
        peer=request.client.host if request.client else None,
    )

    try:
        result = await orchestrator.process(submission.model_dump(), metadata)
    except ValidationError as e:
        logger.info("lead.rejected", code=e.code, message=e.message)
        raise
    except DependencyError as e:
        logger.error("lead.dependency_failed", code=e.code, message=e.message, details=e.details)
        raise

    return LeadIntakeResponse(**result.to_response())
