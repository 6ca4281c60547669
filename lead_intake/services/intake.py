# lead_intake/services/intake.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from lead_intake.core.config import IntakeConfig
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.buyer import BuyerResult
from lead_intake.models.lead import LeadStatus
from lead_intake.services.buyer_router import BuyerRouter
from lead_intake.services.lead_builder import RequestMetadata, build_lead
from lead_intake.services.persistence import LeadWriter
from lead_intake.services.row_store import RowStore
from lead_intake.services.suppression import SuppressionChecker

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class IntakeResult:
    lead_id: str
    status: LeadStatus
    buyer_results: Optional[List[BuyerResult]] = None

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "ok": True,
            "status": self.status.value,
            "lead_id": self.lead_id,
        }
        if self.buyer_results is not None:
            body["buyer_results"] = [r.to_dict() for r in self.buyer_results]
        return body


class IntakeOrchestrator:
    def __init__(
        self,
        config: IntakeConfig,
        store: RowStore,
        suppression: Optional[SuppressionChecker] = None,
        writer: Optional[LeadWriter] = None,
        router: Optional[BuyerRouter] = None,
    ):
        self.config = config
        self.store = store
        self.suppression = suppression or SuppressionChecker(store, config)
        self.writer = writer or LeadWriter(store, config)
        self.router = router or BuyerRouter(config)

    async def process(self, fields: Mapping[str, Any], metadata: RequestMetadata) -> IntakeResult:
        """
        Build, check, record, then route.

        ValidationError surfaces before anything is written. Suppression and
        persistence failures (DependencyError) abort the request. Routing
        failures are logged and dropped; the lead is already recorded.
        """
        lead = build_lead(fields, metadata, self.config)
        log = logger.bind(lead_id=lead.lead_id, vertical=lead.vertical.value)
        log.info("lead.built", has_email=bool(lead.contact.email), has_phone=bool(lead.contact.phone))

        suppressed = await self.suppression.is_suppressed(lead)
        status = LeadStatus.for_suppression(suppressed)

        await self.writer.append_lead(lead, status)

        if status is LeadStatus.BLOCKED:
            log.info("lead.blocked")
            return IntakeResult(lead_id=lead.lead_id, status=status)

        try:
            buyer_results = await self.router.route(lead)
        except Exception as e:
            log.warning("buyers.routing_failed", error=str(e), error_type=type(e).__name__, exc_info=True)
            return IntakeResult(lead_id=lead.lead_id, status=status)

        log.info("lead.accepted", buyers=len(buyer_results))
        return IntakeResult(lead_id=lead.lead_id, status=status, buyer_results=buyer_results)
