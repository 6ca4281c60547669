# lead_intake/services/optout.py
from __future__ import annotations

from typing import Any, Mapping, Optional

from lead_intake.core.config import IntakeConfig
from lead_intake.core.exceptions import ValidationError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.suppression import SuppressionRecord
from lead_intake.services.lead_builder import utc_now_iso
from lead_intake.services.normalization import normalize_email, normalize_phone, normalize_text
from lead_intake.services.row_store import RowStore
from lead_intake.services.suppression import SuppressionChecker

logger = get_structlog_logger(__name__)

DEFAULT_REQUEST_TYPE = "do_not_sell"
DEFAULT_NOTES = "submitted via do-not-sell page"


def build_optout_record(fields: Mapping[str, Any], config: IntakeConfig, now: Optional[str] = None) -> SuppressionRecord:
    email = normalize_email(fields.get("email"))
    phone = normalize_phone(fields.get("phone"), config.phone_max_digits)
    if not email and not phone:
        raise ValidationError("Email or phone required", code="contact_required")
    return SuppressionRecord(
        created_at=now or utc_now_iso(),
        email=email,
        phone=phone,
        request_type=normalize_text(fields.get("request_type")) or DEFAULT_REQUEST_TYPE,
        notes=normalize_text(fields.get("notes")) or DEFAULT_NOTES,
    )


async def record_opt_out(
    fields: Mapping[str, Any],
    store: RowStore,
    config: IntakeConfig,
    suppression: Optional[SuppressionChecker] = None,
) -> SuppressionRecord:
    """Append a suppression record and drop any cached suppression index."""
    record = build_optout_record(fields, config)
    await store.append_row(config.optouts_range, record.to_row())
    if suppression is not None:
        suppression.invalidate()
    logger.info(
        "optout.recorded",
        request_type=record.request_type,
        has_email=bool(record.email),
        has_phone=bool(record.phone),
    )
    return record
