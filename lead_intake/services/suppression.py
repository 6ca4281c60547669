# lead_intake/services/suppression.py
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

from lead_intake.core.config import IntakeConfig
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.lead import Lead
from lead_intake.models.suppression import SuppressionRecord
from lead_intake.services.normalization import normalize_email, normalize_phone
from lead_intake.services.row_store import RowStore

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class SuppressionIndex:
    emails: FrozenSet[str]
    phones: FrozenSet[str]
    size: int

    @classmethod
    def from_records(cls, records: Iterable[SuppressionRecord], phone_max_digits: int) -> "SuppressionIndex":
        emails = set()
        phones = set()
        size = 0
        for rec in records:
            size += 1
            email = normalize_email(rec.email)
            phone = normalize_phone(rec.phone, phone_max_digits)
            # Empty values are never indexed, so empty never matches empty.
            if email:
                emails.add(email)
            if phone:
                phones.add(phone)
        return cls(emails=frozenset(emails), phones=frozenset(phones), size=size)

    def matches(self, email: str, phone: str) -> Optional[str]:
        """Return which key matched ("email" or "phone"), or None."""
        if email and email in self.emails:
            return "email"
        if phone and phone in self.phones:
            return "phone"
        return None


class SuppressionChecker:
    """
    Matches leads against the opt-out table.

    With ``suppression_cache_seconds == 0`` the whole table is re-read on every
    check. A positive value keeps the normalized index for that long;
    ``invalidate()`` drops it early (called after every opt-out append).
    """

    def __init__(self, store: RowStore, config: IntakeConfig):
        self.store = store
        self.config = config
        self._index: Optional[SuppressionIndex] = None
        self._loaded_at = 0.0
        self._generation = 0
        self._lock = asyncio.Lock()

    async def load_records(self) -> List[SuppressionRecord]:
        rows = await self.store.get_rows(self.config.optouts_range)
        return [SuppressionRecord.from_row(row) for row in rows if row]

    async def _fresh_index(self) -> SuppressionIndex:
        records = await self.load_records()
        return SuppressionIndex.from_records(records, self.config.phone_max_digits)

    async def get_index(self) -> SuppressionIndex:
        ttl = self.config.suppression_cache_seconds
        if ttl <= 0:
            return await self._fresh_index()

        async with self._lock:
            while self._index is None or time.monotonic() - self._loaded_at >= ttl:
                generation = self._generation
                index = await self._fresh_index()
                if generation != self._generation:
                    # Invalidated mid-read; the rows may predate the new opt-out.
                    continue
                self._index = index
                self._loaded_at = time.monotonic()
                logger.info("suppression.index_refreshed", size=index.size)
            return self._index

    def invalidate(self) -> None:
        self._generation += 1
        self._index = None

    async def is_suppressed(self, lead: Lead) -> bool:
        index = await self.get_index()
        matched = index.matches(lead.contact.email, lead.contact.phone)
        logger.info(
            "suppression.checked",
            lead_id=lead.lead_id,
            suppressed=matched is not None,
            matched_on=matched,
            records=index.size,
        )
        return matched is not None
