"""
Result models for the enforcement policies.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EnforcementOutcome(str, Enum):
    """Terminal effect of a policy run."""

    NO_ACTION = "no_action"
    WARNING_ISSUED = "warning_issued"
    ROTATION_FORCED = "rotation_forced"


class LoginStage(str, Enum):
    """Furthest stage reached by a login check."""

    START = "start"
    IDENTITY_RESOLVED = "identity_resolved"
    CREDENTIAL_VERIFIED = "credential_verified"
    BREACH_EVALUATED = "breach_evaluated"


@dataclass(frozen=True)
class EnforcementResult:
    """Outcome of a policy run, plus the message key to show, if any."""

    outcome: EnforcementOutcome
    message_key: str | None = None
    stage: LoginStage | None = None

    @property
    def warning_issued(self) -> bool:
        return self.outcome == EnforcementOutcome.WARNING_ISSUED

    @property
    def rotation_forced(self) -> bool:
        return self.outcome == EnforcementOutcome.ROTATION_FORCED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "outcome": self.outcome.value,
            "message_key": self.message_key,
            "stage": self.stage.value if self.stage else None,
        }
