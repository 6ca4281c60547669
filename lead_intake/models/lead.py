# lead_intake/models/lead.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from lead_intake.models.vertical import Vertical


class LeadStatus(str, Enum):
    ACCEPTED = "accepted"
    BLOCKED = "blocked"

    @classmethod
    def for_suppression(cls, suppressed: bool) -> "LeadStatus":
        return cls.BLOCKED if suppressed else cls.ACCEPTED


@dataclass(frozen=True)
class Contact:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class Address:
    postal_code: str = ""
    country: str = "US"


@dataclass(frozen=True)
class Vehicle:
    year: str = ""
    make: str = ""
    model: str = ""


@dataclass(frozen=True)
class Property:
    home_type: str = ""
    ownership: str = ""


@dataclass(frozen=True)
class Consent:
    given: bool = False
    text: str = ""
    timestamp: str = ""
    source_url: str = ""
    ip: str = ""
    user_agent: str = ""
    channel: str = "web_form"


@dataclass(frozen=True)
class Tracking:
    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_term: str = ""
    utm_content: str = ""
    gclid: str = ""


@dataclass(frozen=True)
class Lead:
    """One canonical consumer submission.

    Sub-records always exist with empty-string defaults so every lead produces
    the same row and payload shape regardless of vertical.
    """

    lead_id: str
    created_at: str
    vertical: Vertical
    contact: Contact = field(default_factory=Contact)
    address: Address = field(default_factory=Address)
    vehicle: Vehicle = field(default_factory=Vehicle)
    property: Property = field(default_factory=Property)
    consent: Consent = field(default_factory=Consent)
    tracking: Tracking = field(default_factory=Tracking)
    raw_vertical: str = ""
