"""
Account lookup and credential storage collaborators.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from pwnedcheck.accounts.base import (
    AccountIdentity,
    AccountStore,
    AccountStoreError,
    RotationUpdateError,
    normalize_username,
)
from pwnedcheck.accounts.passwords import hash_password, verify_password
from pwnedcheck.accounts.sqlite_store import SQLiteAccountStore

__all__ = [
    "AccountIdentity",
    "AccountStore",
    "AccountStoreError",
    "RotationUpdateError",
    "SQLiteAccountStore",
    "hash_password",
    "normalize_username",
    "verify_password",
]
