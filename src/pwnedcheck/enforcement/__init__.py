"""
Enforcement policies reacting to breached passwords.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from pwnedcheck.enforcement.models import (
    EnforcementOutcome,
    EnforcementResult,
    LoginStage,
)
from pwnedcheck.enforcement.messages import PASSWORD_BREACHED, get_message
from pwnedcheck.enforcement.policy import BreachPolicy

__all__ = [
    "BreachPolicy",
    "EnforcementOutcome",
    "EnforcementResult",
    "LoginStage",
    "PASSWORD_BREACHED",
    "get_message",
]
