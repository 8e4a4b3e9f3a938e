"""
Password hashing and verification for stored credentials.

Hashes are stored as ``pbkdf2-sha256$<iterations>$<salt>$<hash>`` with
base64 salt and hash.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import base64
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

HASH_SCHEME = "pbkdf2-sha256"
DEFAULT_ITERATIONS = 480000  # OWASP recommended minimum
SALT_BYTES = 16
KEY_LENGTH = 32


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Hash a password for storage.

    Args:
        password: Plain text password
        iterations: PBKDF2 iteration count

    Returns:
        Encoded hash string
    """
    salt = secrets.token_bytes(SALT_BYTES)
    key = _kdf(salt, iterations).derive(password.encode("utf-8"))
    return "$".join([
        HASH_SCHEME,
        str(iterations),
        base64.b64encode(salt).decode(),
        base64.b64encode(key).decode(),
    ])


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a password against a stored hash.

    Raises:
        ValueError: If the stored hash is not in a recognised format
    """
    parts = stored_hash.split("$")
    if len(parts) != 4 or parts[0] != HASH_SCHEME:
        raise ValueError("Unrecognised password hash format")

    try:
        iterations = int(parts[1])
        salt = base64.b64decode(parts[2], validate=True)
        expected = base64.b64decode(parts[3], validate=True)
    except ValueError as e:
        raise ValueError(f"Malformed password hash: {e}") from e

    try:
        _kdf(salt, iterations).verify(password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True
