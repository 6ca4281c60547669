# lead_intake/schemas/__init__.py
"""
Pydantic schemas for request/response validation and serialization.
"""

from lead_intake.schemas.errors import ErrorResponse
from lead_intake.schemas.lead import BuyerResultOut, LeadIntakeResponse, LeadSubmission
from lead_intake.schemas.optout import OptOutRequest, OptOutResponse

__all__ = [
    "BuyerResultOut",
    "ErrorResponse",
    "LeadIntakeResponse",
    "LeadSubmission",
    "OptOutRequest",
    "OptOutResponse",
]
