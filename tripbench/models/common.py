"""Shared types, enums, and base models used across tripbench domain models."""

import hashlib
from enum import StrEnum

from pydantic import BaseModel


# --- Shared enums ---


class TripMode(StrEnum):
    """How a trip is made."""

    WALK = "WALK"
    BIKE = "BIKE"
    TRANSIT = "TRANSIT"
    DRIVE = "DRIVE"

    @property
    def ongoing_verb(self) -> str:
        return _ONGOING_VERBS[self]

    @property
    def cruising_speed_mps(self) -> float:
        """Nominal speed used by the reference simulator, metres/second."""
        return _CRUISING_SPEEDS_MPS[self]


_ONGOING_VERBS = {
    TripMode.WALK: "walking",
    TripMode.BIKE: "biking",
    TripMode.TRANSIT: "riding transit",
    TripMode.DRIVE: "driving",
}

_CRUISING_SPEEDS_MPS = {
    TripMode.WALK: 1.34,
    TripMode.BIKE: 4.5,
    TripMode.TRANSIT: 11.0,
    TripMode.DRIVE: 13.4,
}


# --- Base model ---


class TripBenchBase(BaseModel):
    """Base model with common configuration for all tripbench Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
    }

    def checksum(self) -> str:
        """SHA-256 over the canonical JSON form, as 'sha256:<hex>'."""
        digest = hashlib.sha256(self.model_dump_json().encode("utf-8")).hexdigest()
        return f"sha256:{digest}"
