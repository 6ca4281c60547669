# lead_intake/routes/deps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from lead_intake.core.config import IntakeConfig
from lead_intake.core.exceptions import ConfigurationError
from lead_intake.services.intake import IntakeOrchestrator
from lead_intake.services.row_store import RowStore


@dataclass
class IntakeState:
    """Per-process wiring stored on ``app.state.intake``."""

    config: Optional[IntakeConfig] = None
    store: Optional[RowStore] = None
    orchestrator: Optional[IntakeOrchestrator] = None
    startup_error: Optional[ConfigurationError] = None


def get_intake_state(request: Request) -> IntakeState:
    state: IntakeState = request.app.state.intake
    if state.startup_error is not None:
        raise state.startup_error
    return state


def get_orchestrator(request: Request) -> IntakeOrchestrator:
    return get_intake_state(request).orchestrator
