"""
Data models for Pwned Passwords range queries.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class RiskLevel(str, Enum):
    """Risk level based on password exposure."""

    SAFE = "safe"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_occurrences(cls, occurrences: int) -> "RiskLevel":
        """Map a breach occurrence count to a risk level."""
        if occurrences <= 0:
            return cls.SAFE
        elif occurrences < 10:
            return cls.LOW
        elif occurrences < 100:
            return cls.MEDIUM
        elif occurrences < 10000:
            return cls.HIGH
        else:
            return cls.CRITICAL


@dataclass(frozen=True)
class BreachQuery:
    """k-anonymity query derived from a password's SHA-1 digest.

    Only ``prefix`` is ever sent to the range service.
    """

    prefix: str
    suffix: str = field(repr=False)

    @property
    def digest(self) -> str:
        """Full uppercase SHA-1 hex digest."""
        return self.prefix + self.suffix


@dataclass(frozen=True)
class RangeRecord:
    """One ``SUFFIX:COUNT`` line from a range response."""

    suffix: str
    count: int


@dataclass
class RangeResponse:
    """Parsed range response for a single prefix."""

    records: list[RangeRecord] = field(default_factory=list)
    skipped_lines: int = 0

    def __iter__(self) -> Iterator[RangeRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def find(self, suffix: str) -> RangeRecord | None:
        """Find the record whose suffix matches, ignoring case."""
        wanted = suffix.upper()
        for record in self.records:
            if record.suffix.upper() == wanted:
                return record
        return None

    def occurrences(self, suffix: str) -> int:
        """Breach occurrence count for a suffix (0 when absent)."""
        record = self.find(suffix)
        return record.count if record else 0


@dataclass(frozen=True)
class BreachVerdict:
    """Outcome of a breach evaluation. Carries no digest or count data."""

    is_breached: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"is_breached": self.is_breached}
