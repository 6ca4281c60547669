# lead_intake/services/__init__.py
"""
Intake pipeline services: normalization, lead building, suppression,
persistence, buyer routing and orchestration.
"""

from lead_intake.services.buyer_router import BuyerRouter, build_buyer_payload
from lead_intake.services.intake import IntakeOrchestrator, IntakeResult
from lead_intake.services.lead_builder import RequestMetadata, build_lead
from lead_intake.services.optout import record_opt_out
from lead_intake.services.persistence import LEAD_COLUMNS, LeadWriter, build_lead_row
from lead_intake.services.row_store import InMemoryRowStore, RowStore, SheetsRowStore, build_row_store
from lead_intake.services.suppression import SuppressionChecker

__all__ = [
    # Routing
    "BuyerRouter",
    "build_buyer_payload",
    # Orchestration
    "IntakeOrchestrator",
    "IntakeResult",
    # Lead building
    "RequestMetadata",
    "build_lead",
    # Opt-outs
    "record_opt_out",
    # Persistence
    "LEAD_COLUMNS",
    "LeadWriter",
    "build_lead_row",
    # Row store
    "InMemoryRowStore",
    "RowStore",
    "SheetsRowStore",
    "build_row_store",
    # Suppression
    "SuppressionChecker",
]
