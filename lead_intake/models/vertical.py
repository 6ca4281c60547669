# lead_intake/models/vertical.py
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple


class Vertical(str, Enum):
    AUTO = "auto"
    HOME = "home"
    BUNDLE = "bundle"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Vertical"]:
        """Return the matching vertical, or None for anything outside the closed set."""
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def fan_out(self) -> Tuple["Vertical", ...]:
        # Order matters: a buyer is scoped to the first vertical it accepts.
        if self is Vertical.BUNDLE:
            return (Vertical.BUNDLE, Vertical.AUTO, Vertical.HOME)
        return (self,)

    @property
    def has_vehicle(self) -> bool:
        return self in (Vertical.AUTO, Vertical.BUNDLE)

    @property
    def has_property(self) -> bool:
        return self in (Vertical.HOME, Vertical.BUNDLE)
