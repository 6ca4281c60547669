# lead_intake/schemas/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    detail: str
    details: Optional[Dict[str, Any]] = None
