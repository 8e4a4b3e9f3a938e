"""
Account lookup contract used by the enforcement policies.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import re
import unicodedata
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

_WHITESPACE = re.compile(r"\s+")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


class AccountStoreError(Exception):
    """Raised when the account store cannot complete an operation."""


class RotationUpdateError(AccountStoreError):
    """A breached credential could not be marked for rotation."""

    def __init__(self, user_id: int, reason: str = ""):
        self.user_id = user_id
        message = f"Could not force password rotation for user {user_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


def normalize_username(username: str) -> str:
    """Canonical form of a username for lookups.

    NFKC-normalizes, drops control characters, collapses whitespace
    runs to a single space, trims and case-folds, so that ``"Alice "``
    and ``"alice"`` resolve to the same account.
    """
    cleaned = unicodedata.normalize("NFKC", username)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    cleaned = _CONTROL.sub("", cleaned).strip()
    return cleaned.casefold()


@dataclass(frozen=True)
class AccountIdentity:
    """An account as seen by the policies. Never mutated here."""

    user_id: int
    stored_credential_hash: str | None = field(default=None, repr=False)


class AccountStore(ABC):
    """Storage collaborator for account lookups and rotation marking.

    Subclasses implement ``_find_by_clean_username``; the username they
    receive has already been through ``normalize_username``.
    """

    def find_account(self, username: str) -> AccountIdentity | None:
        """Find an account by (un-normalized) username."""
        return self._find_by_clean_username(normalize_username(username))

    @abstractmethod
    def _find_by_clean_username(self, username_clean: str) -> AccountIdentity | None:
        """Find an account by its normalized username."""
        pass

    @abstractmethod
    def get_password_hash(self, user_id: int) -> str | None:
        """Fetch the stored credential hash for an account."""
        pass

    @abstractmethod
    def mark_rotation_required(self, user_id: int) -> bool:
        """Flag an account so its next login must change password.

        Must be a single atomic update of one account.

        Returns:
            True if the account was updated
        """
        pass
