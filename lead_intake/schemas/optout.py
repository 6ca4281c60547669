# lead_intake/schemas/optout.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OptOutRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = None
    phone: Optional[str] = None
    request_type: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("email", "phone", mode="before")
    def coerce_scalars(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class OptOutResponse(BaseModel):
    ok: bool = True
