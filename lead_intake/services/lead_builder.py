# lead_intake/services/lead_builder.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from lead_intake.core.config import IntakeConfig
from lead_intake.core.exceptions import ValidationError
from lead_intake.core.logging import get_structlog_logger
from lead_intake.models.lead import (
    Address,
    Consent,
    Contact,
    Lead,
    Property,
    Tracking,
    Vehicle,
)
from lead_intake.models.vertical import Vertical
from lead_intake.services.normalization import (
    normalize_email,
    normalize_phone,
    normalize_text,
    parse_flag,
)

logger = get_structlog_logger(__name__)

CONSENT_FIELDS = ("consent", "tcpa_consent")


@dataclass(frozen=True)
class RequestMetadata:
    ip: str = ""
    user_agent: str = ""
    referrer: str = ""

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], peer: Optional[str] = None) -> "RequestMetadata":
        """Resolve client metadata from proxy headers, falling back to the socket peer."""
        forwarded = (headers.get("x-forwarded-for") or "").split(",")[0].strip()
        ip = (
            headers.get("x-nf-client-connection-ip")
            or forwarded
            or headers.get("client-ip")
            or peer
            or ""
        )
        return cls(
            ip=ip.strip(),
            user_agent=normalize_text(headers.get("user-agent")),
            referrer=normalize_text(headers.get("referer")),
        )


def _field(fields: Mapping[str, Any], key: str) -> str:
    return normalize_text(fields.get(key))


def new_lead_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_vertical(fields: Mapping[str, Any], default: Vertical) -> tuple[Vertical, str]:
    """Return ``(vertical, raw_value)``; unknown values clamp to ``default``."""
    raw = _field(fields, "lead_type") or _field(fields, "coverage_type")
    if not raw:
        return default, ""
    return Vertical.parse(raw) or default, raw


def has_consent(fields: Mapping[str, Any]) -> bool:
    return any(parse_flag(fields.get(key)) for key in CONSENT_FIELDS)


def build_lead(
    fields: Mapping[str, Any],
    metadata: RequestMetadata,
    config: IntakeConfig,
    now: Optional[str] = None,
) -> Lead:
    """
    Build a canonical Lead from a raw submission.

    Every optional field defaults to an empty string. Raises ValidationError
    when there is no contact channel or when consent is required and absent.
    Nothing is written before this returns.
    """
    email = normalize_email(fields.get("email"))
    phone = normalize_phone(fields.get("phone"), config.phone_max_digits)
    if not email and not phone:
        raise ValidationError("Email or phone required", code="contact_required")

    consent_given = has_consent(fields)
    if config.require_consent and not consent_given:
        raise ValidationError("Consent is required", code="consent_required")

    vertical, raw_vertical = resolve_vertical(fields, config.default_vertical)
    if raw_vertical and raw_vertical.lower() != vertical.value:
        logger.info("lead.vertical_clamped", raw_vertical=raw_vertical, vertical=vertical.value)

    created_at = now or utc_now_iso()
    source_url = _field(fields, "source_url") or metadata.referrer
    user_agent = metadata.user_agent or _field(fields, "user_agent")

    vehicle = Vehicle()
    if vertical.has_vehicle:
        vehicle = Vehicle(
            year=_field(fields, "vehicle_year"),
            make=_field(fields, "vehicle_make"),
            model=_field(fields, "vehicle_model"),
        )

    prop = Property()
    if vertical.has_property:
        prop = Property(
            home_type=_field(fields, "home_type"),
            ownership=_field(fields, "home_ownership"),
        )

    return Lead(
        lead_id=new_lead_id(),
        created_at=created_at,
        vertical=vertical,
        raw_vertical=raw_vertical,
        contact=Contact(
            first_name=_field(fields, "first_name"),
            last_name=_field(fields, "last_name"),
            email=email,
            phone=phone,
        ),
        address=Address(postal_code=_field(fields, "zip")),
        vehicle=vehicle,
        property=prop,
        consent=Consent(
            given=consent_given,
            text=_field(fields, "tcpa_text"),
            # One consent event per lead: stamped with the intake time.
            timestamp=created_at,
            source_url=source_url,
            ip=metadata.ip,
            user_agent=user_agent,
        ),
        tracking=Tracking(
            utm_source=_field(fields, "utm_source"),
            utm_medium=_field(fields, "utm_medium"),
            utm_campaign=_field(fields, "utm_campaign"),
            utm_term=_field(fields, "utm_term"),
            utm_content=_field(fields, "utm_content"),
            gclid=_field(fields, "gclid"),
        ),
    )
