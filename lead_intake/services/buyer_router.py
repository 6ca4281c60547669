# lead_intake/services/buyer_router.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from lead_intake.core.config import IntakeConfig
from lead_intake.core.exceptions import BuyerDispatchError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.buyer import BuyerResult, BuyerTarget, DispatchMode, DispatchStatus
from lead_intake.models.lead import Lead, LeadStatus
from lead_intake.models.vertical import Vertical

logger = get_structlog_logger(__name__)

USER_AGENT = "LeadIntake-Dispatch/1.0"


def build_buyer_payload(lead: Lead, vertical: Vertical, config: IntakeConfig) -> Dict[str, Any]:
    """
    Format a lead for one buyer, scoped to ``vertical``.

    Auto payloads omit the property block and home payloads omit the vehicle
    block; bundle payloads carry both.
    """
    payload: Dict[str, Any] = {
        "lead_id": lead.lead_id,
        "vertical": vertical.value,
        "lead_status": LeadStatus.ACCEPTED.value,
        "contact": {
            "first_name": lead.contact.first_name,
            "last_name": lead.contact.last_name,
            "email": lead.contact.email,
            "phone": lead.contact.phone,
        },
        "address": {
            "postal_code": lead.address.postal_code,
            "country": lead.address.country,
        },
        "tcpa": {
            "consent_text": lead.consent.text,
            "consent_timestamp": lead.consent.timestamp,
            "consent_url": lead.consent.source_url,
            "ip_address": lead.consent.ip,
            "user_agent": lead.consent.user_agent,
            "consent_channel": lead.consent.channel,
        },
        "traffic": {
            "source_url": lead.consent.source_url,
            "landing_page": lead.consent.source_url,
            "utm_source": lead.tracking.utm_source,
            "utm_medium": lead.tracking.utm_medium,
            "utm_campaign": lead.tracking.utm_campaign,
            "utm_term": lead.tracking.utm_term,
            "utm_content": lead.tracking.utm_content,
            "gclid": lead.tracking.gclid,
        },
        "compliance_flags": {
            "is_opted_out": False,
        },
        "meta": {
            "form_version": config.form_version,
            "site": config.site_name,
            "environment": config.environment,
        },
    }

    if vertical.has_vehicle:
        payload["vehicle"] = {
            "year": lead.vehicle.year,
            "make": lead.vehicle.make,
            "model": lead.vehicle.model,
        }
    if vertical.has_property:
        payload["property"] = {
            "home_type": lead.property.home_type,
            "ownership": lead.property.ownership,
        }

    return payload


def plan_targets(lead: Lead, buyers: Tuple[BuyerTarget, ...]) -> List[Tuple[BuyerTarget, Vertical]]:
    """Pair every buyer that wants this lead with the vertical its payload is scoped to."""
    plan = []
    for buyer in buyers:
        for vertical in lead.vertical.fan_out:
            if buyer.accepts(vertical):
                plan.append((buyer, vertical))
                break
    return plan


async def post_to_buyer(
    session: aiohttp.ClientSession,
    *,
    url: str,
    token: Optional[str],
    payload: Dict[str, Any],
) -> int:
    """
    POST the payload and return the HTTP status.
    Raises BuyerDispatchError on non-2xx, timeout or network failure.
    """
    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    try:
        async with session.post(url, json=payload, headers=headers) as response:
            status = response.status
            body = await response.text(errors="replace")
    except asyncio.TimeoutError as e:
        raise BuyerDispatchError("Request timeout") from e
    except aiohttp.ClientError as e:
        raise BuyerDispatchError(f"Client error: {str(e)[:200]}") from e

    if not 200 <= status < 300:
        raise BuyerDispatchError(f"HTTP {status}: {body[:200]}", http_status=status)

    logger.debug("buyer.response", http_status=status, body=body[:500])
    return status


class BuyerRouter:
    def __init__(self, config: IntakeConfig):
        self.config = config

    async def _dispatch(
        self,
        session: aiohttp.ClientSession,
        buyer: BuyerTarget,
        vertical: Vertical,
        lead: Lead,
    ) -> BuyerResult:
        payload = build_buyer_payload(lead, vertical, self.config)
        try:
            http_status = await post_to_buyer(
                session,
                url=buyer.endpoint_url,
                token=buyer.auth_token,
                payload=payload,
            )
        except BuyerDispatchError as e:
            logger.warning(
                "buyer.error",
                lead_id=lead.lead_id,
                buyer=buyer.name,
                vertical=vertical.value,
                http_status=e.http_status,
                error=e.message,
            )
            return BuyerResult(
                buyer_name=buyer.name,
                vertical=vertical,
                status=DispatchStatus.ERROR,
                http_status=e.http_status,
                error=e.message,
            )

        logger.info(
            "buyer.sent",
            lead_id=lead.lead_id,
            buyer=buyer.name,
            vertical=vertical.value,
            http_status=http_status,
        )
        return BuyerResult(
            buyer_name=buyer.name,
            vertical=vertical,
            status=DispatchStatus.SENT,
            http_status=http_status,
        )

    def _dry_run(self, buyer: BuyerTarget, vertical: Vertical, lead: Lead) -> BuyerResult:
        payload = build_buyer_payload(lead, vertical, self.config)
        logger.info(
            "buyer.dry_run",
            lead_id=lead.lead_id,
            buyer=buyer.name,
            vertical=vertical.value,
            url=buyer.endpoint_url,
            payload=payload,
        )
        return BuyerResult(buyer_name=buyer.name, vertical=vertical, status=DispatchStatus.DRY_RUN)

    async def route(self, lead: Lead) -> List[BuyerResult]:
        """
        Dispatch an accepted lead to every eligible buyer.

        Live calls run concurrently and are all awaited; a failing buyer only
        produces an ``error`` result. Results keep the configured buyer order.
        """
        plan = plan_targets(lead, self.config.buyers)
        results: List[Optional[BuyerResult]] = [None] * len(plan)
        live: List[Tuple[int, BuyerTarget, Vertical]] = []

        for i, (buyer, vertical) in enumerate(plan):
            if not buyer.is_dispatchable:
                reason = "disabled" if not buyer.enabled else "no_endpoint"
                logger.info("buyer.skipped", lead_id=lead.lead_id, buyer=buyer.name, reason=reason)
                results[i] = BuyerResult(
                    buyer_name=buyer.name,
                    vertical=vertical,
                    status=DispatchStatus.SKIPPED,
                    error=reason,
                )
            elif self.config.dispatch_mode is DispatchMode.DRY_RUN:
                results[i] = self._dry_run(buyer, vertical, lead)
            else:
                live.append((i, buyer, vertical))

        if live:
            timeout = aiohttp.ClientTimeout(total=self.config.buyer_timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                outcomes = await asyncio.gather(
                    *(self._dispatch(session, buyer, vertical, lead) for _, buyer, vertical in live),
                    return_exceptions=True,
                )
            for (i, buyer, vertical), outcome in zip(live, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error(
                        "buyer.unexpected_error",
                        lead_id=lead.lead_id,
                        buyer=buyer.name,
                        error=str(outcome),
                    )
                    outcome = BuyerResult(
                        buyer_name=buyer.name,
                        vertical=vertical,
                        status=DispatchStatus.ERROR,
                        error=f"Unexpected error: {str(outcome)[:200]}",
                    )
                results[i] = outcome

        logger.info(
            "buyers.routed",
            lead_id=lead.lead_id,
            vertical=lead.vertical.value,
            mode=self.config.dispatch_mode.value,
            results=[r.status.value for r in results],
        )
        return results
