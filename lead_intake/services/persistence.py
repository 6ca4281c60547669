# lead_intake/services/persistence.py
from __future__ import annotations

from typing import List

from lead_intake.core.config import IntakeConfig
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.lead import Lead, LeadStatus
from lead_intake.services.row_store import RowStore

logger = get_structlog_logger(__name__)

# Column order is an external contract with whoever reads the sheet.
# New columns go at the end and bump LEAD_LAYOUT_VERSION.
LEAD_LAYOUT_VERSION = 1
LEAD_COLUMNS = (
    "created_at",    # A
    "ip",            # B
    "user_agent",    # C
    "first_name",    # D
    "last_name",     # E
    "email",         # F
    "phone",         # G
    "zip",           # H
    "vertical",      # I
    "consent_flag",  # J
    "consent_text",  # K
    "source_url",    # L
    "status",        # M
)


def build_lead_row(lead: Lead, status: LeadStatus) -> List[str]:
    values = {
        "created_at": lead.created_at,
        "ip": lead.consent.ip,
        "user_agent": lead.consent.user_agent,
        "first_name": lead.contact.first_name,
        "last_name": lead.contact.last_name,
        "email": lead.contact.email,
        "phone": lead.contact.phone,
        "zip": lead.address.postal_code,
        "vertical": lead.vertical.value,
        "consent_flag": "yes" if lead.consent.given else "no",
        "consent_text": lead.consent.text,
        "source_url": lead.consent.source_url,
        "status": LeadStatus(status).value,
    }
    return [values[col] for col in LEAD_COLUMNS]


class LeadWriter:
    def __init__(self, store: RowStore, config: IntakeConfig):
        self.store = store
        self.config = config

    async def append_lead(self, lead: Lead, status: LeadStatus) -> None:
        """Record the submission whatever its status. Raises DependencyError on failure."""
        row = build_lead_row(lead, status)
        await self.store.append_row(self.config.leads_range, row)
        logger.info(
            "lead.persisted",
            lead_id=lead.lead_id,
            status=row[-1],
            layout_version=LEAD_LAYOUT_VERSION,
        )
