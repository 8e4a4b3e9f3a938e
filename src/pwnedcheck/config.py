"""
Configuration for breach checking and the reference account store.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class PwnedCheckConfig:
    """Configuration for the range client and account store."""

    # Pwned Passwords range service
    api_base: str = "https://api.pwnedpasswords.com"
    timeout: float = 5.0  # seconds, per range request
    user_agent: str = "pwnedcheck/0.1"
    add_padding: bool = False

    # Reference SQLite account store
    db_path: str | Path | None = None

    @classmethod
    def from_env(cls) -> "PwnedCheckConfig":
        """Load configuration from environment variables."""
        try:
            timeout = float(os.environ.get("PWNEDCHECK_TIMEOUT", "5.0"))
        except ValueError:
            timeout = 5.0

        return cls(
            api_base=os.environ.get("PWNEDCHECK_API_BASE", "https://api.pwnedpasswords.com"),
            timeout=timeout,
            user_agent=os.environ.get("PWNEDCHECK_USER_AGENT", "pwnedcheck/0.1"),
            add_padding=os.environ.get("PWNEDCHECK_ADD_PADDING", "").lower() in ("true", "yes", "1"),
            db_path=os.environ.get("PWNEDCHECK_DB_PATH"),
        )

    def get_db_path(self) -> Path:
        """Get SQLite database path."""
        if self.db_path:
            return Path(self.db_path)
        return Path.home() / ".pwnedcheck" / "accounts.db"

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if not self.api_base.startswith(("http://", "https://")):
            errors.append("API base must be an http(s) URL")
        if self.timeout <= 0:
            errors.append("Timeout must be greater than zero")
        if not self.user_agent:
            errors.append("User-Agent is required by the range service")

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "api_base": self.api_base,
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "add_padding": self.add_padding,
            "db_path": str(self.get_db_path()),
        }
