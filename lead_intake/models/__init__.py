# lead_intake/models/__init__.py
"""
Domain records: leads, buyers, suppression entries and verticals.
"""

from lead_intake.models.buyer import BuyerResult, BuyerTarget, DispatchMode, DispatchStatus
from lead_intake.models.lead import (
    Address,
    Consent,
    Contact,
    Lead,
    LeadStatus,
    Property,
    Tracking,
    Vehicle,
)
from lead_intake.models.suppression import SuppressionRecord
from lead_intake.models.vertical import Vertical

__all__ = [
    "Address",
    "BuyerResult",
    "BuyerTarget",
    "Consent",
    "Contact",
    "DispatchMode",
    "DispatchStatus",
    "Lead",
    "LeadStatus",
    "Property",
    "SuppressionRecord",
    "Tracking",
    "Vehicle",
    "Vertical",
]
