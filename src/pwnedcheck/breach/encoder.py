"""
Password to k-anonymity query encoding.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import hashlib
import re

from pwnedcheck.breach.models import BreachQuery

PREFIX_LENGTH = 5

_SHA1_HEX = re.compile(r"^[0-9A-Fa-f]{40}$")


def encode_password(password: str) -> BreachQuery:
    """Encode a password into a range query.

    The SHA-1 digest is taken over the exact UTF-8 bytes of the password.
    No trimming, case folding or Unicode normalization is applied.

    Args:
        password: Password to encode (NOT stored or logged)

    Returns:
        BreachQuery with 5-char prefix and 35-char suffix
    """
    # lone surrogates are hashed as-is
    password_hash = hashlib.sha1(password.encode("utf-8", "surrogatepass")).hexdigest().upper()
    return BreachQuery(
        prefix=password_hash[:PREFIX_LENGTH],
        suffix=password_hash[PREFIX_LENGTH:],
    )


def query_from_digest(sha1_hash: str) -> BreachQuery:
    """Build a range query from a precomputed SHA-1 hex digest.

    Raises:
        ValueError: If the digest is not 40 hex characters
    """
    sha1_hash = sha1_hash.strip()
    if not _SHA1_HEX.match(sha1_hash):
        raise ValueError("Expected a 40 character SHA-1 hex digest")

    sha1_hash = sha1_hash.upper()
    return BreachQuery(
        prefix=sha1_hash[:PREFIX_LENGTH],
        suffix=sha1_hash[PREFIX_LENGTH:],
    )
