# lead_intake/models/buyer.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from lead_intake.models.vertical import Vertical


class DispatchMode(str, Enum):
    DRY_RUN = "dry-run"
    LIVE = "live"


class DispatchStatus(str, Enum):
    SENT = "sent"
    ERROR = "error"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"


class BuyerEntry(BaseModel):
    """One configured buyer as written in ``EXTRA_BUYERS``."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    verticals: List[str] = []
    endpoint_url: Optional[str] = None
    auth_token: Optional[str] = None
    enabled: bool = True


@dataclass(frozen=True)
class BuyerTarget:
    name: str
    verticals: FrozenSet[Vertical]
    endpoint_url: Optional[str] = None
    auth_token: Optional[str] = None
    enabled: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuyerTarget":
        entry = BuyerEntry.model_validate(data)
        name = entry.name.strip()
        if not name:
            raise ValueError("buyer entry requires a name")
        verticals = _parse_verticals(entry.verticals)
        if not verticals:
            raise ValueError(f"buyer {name!r} has no recognized verticals")
        return cls(
            name=name,
            verticals=verticals,
            endpoint_url=entry.endpoint_url or None,
            auth_token=entry.auth_token or None,
            enabled=entry.enabled,
        )

    @property
    def is_dispatchable(self) -> bool:
        return self.enabled and bool(self.endpoint_url)

    def accepts(self, vertical: Vertical) -> bool:
        return vertical in self.verticals


def _parse_verticals(values: Iterable[str]) -> FrozenSet[Vertical]:
    parsed = (Vertical.parse(v) for v in values)
    return frozenset(v for v in parsed if v is not None)


@dataclass(frozen=True)
class BuyerResult:
    buyer_name: str
    vertical: Vertical
    status: DispatchStatus
    http_status: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "buyer_name": self.buyer_name,
            "vertical": self.vertical.value,
            "status": self.status.value,
        }
        if self.http_status is not None:
            out["http_status"] = self.http_status
        if self.error:
            out["error"] = self.error
        return out
