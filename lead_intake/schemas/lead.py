# lead_intake/schemas/lead.py
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

_TEXT_FIELDS = (
    "email", "phone", "first_name", "last_name", "zip",
    "lead_type", "coverage_type",
    "vehicle_year", "vehicle_make", "vehicle_model",
    "home_type", "home_ownership",
    "tcpa_text", "source_url", "user_agent",
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "gclid",
)


class LeadSubmission(BaseModel):
    """Raw form fields. Everything is optional; the lead builder decides what is required."""

    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    zip: Optional[str] = None
    lead_type: Optional[str] = None
    coverage_type: Optional[str] = None
    vehicle_year: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    home_type: Optional[str] = None
    home_ownership: Optional[str] = None
    tcpa_text: Optional[str] = None
    consent: Optional[Union[bool, str]] = None
    tcpa_consent: Optional[Union[bool, str]] = None
    source_url: Optional[str] = None
    user_agent: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None
    gclid: Optional[str] = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    def coerce_scalars(cls, v: Any) -> Any:
        # Forms post zip codes and model years as numbers.
        if isinstance(v, (bool, int, float)):
            return str(v)
        return v


class BuyerResultOut(BaseModel):
    buyer_name: str
    vertical: str
    status: str
    http_status: Optional[int] = None
    error: Optional[str] = None


class LeadIntakeResponse(BaseModel):
    ok: bool = True
    status: str
    lead_id: str
    buyer_results: Optional[List[BuyerResultOut]] = None
