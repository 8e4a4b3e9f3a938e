"""
Pwned Passwords range API client.

Implements the k-anonymity range lookup: only the first 5 characters of
the SHA-1 digest are sent, and the service answers with every known
breached suffix sharing that prefix.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import logging
import re

import aiohttp

from pwnedcheck.breach.models import RangeRecord, RangeResponse
from pwnedcheck.config import PwnedCheckConfig

logger = logging.getLogger(__name__)

_PREFIX = re.compile(r"^[0-9A-F]{5}$")
_HEX = re.compile(r"^[0-9A-F]+$")


def parse_range_response(text: str) -> RangeResponse:
    """Parse a ``SUFFIX:COUNT`` per line range response.

    Malformed lines are skipped and counted rather than aborting the parse.

    Args:
        text: Raw response body (CRLF or LF line endings)

    Returns:
        RangeResponse with parsed records
    """
    response = RangeResponse()

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        hash_suffix, sep, count = line.partition(":")
        hash_suffix = hash_suffix.strip().upper()
        if not sep or not _HEX.match(hash_suffix):
            response.skipped_lines += 1
            logger.debug("Skipping range line without a valid suffix")
            continue

        count = count.strip()
        if not (count.isascii() and count.isdigit()):
            response.skipped_lines += 1
            logger.debug("Skipping range line with non-numeric count")
            continue

        response.records.append(RangeRecord(suffix=hash_suffix, count=int(count)))

    return response


class RangeClient:
    """Client for the Pwned Passwords range endpoint.

    Can be used as an async context manager to reuse one HTTP session
    across lookups; otherwise each lookup opens its own session.
    """

    PWNED_PASSWORDS_API = "https://api.pwnedpasswords.com"
    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        api_base: str | None = None,
        user_agent: str = "pwnedcheck/0.1",
        timeout: float | None = None,
        add_padding: bool = False,
    ):
        """Initialize range client.

        Args:
            api_base: Base URL of the range service
            user_agent: User-Agent header for requests
            timeout: Seconds before a lookup is abandoned (default: 5.0)
            add_padding: Ask the service to pad responses with count-0 records
        """
        self.api_base = (api_base or self.PWNED_PASSWORDS_API).rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.add_padding = add_padding
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: PwnedCheckConfig) -> "RangeClient":
        """Create a client from configuration."""
        return cls(
            api_base=config.api_base,
            user_agent=config.user_agent,
            timeout=config.timeout,
            add_padding=config.add_padding,
        )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RangeClient":
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def range_url(self, prefix: str) -> str:
        """URL for a prefix lookup."""
        return f"{self.api_base}/range/{prefix}"

    async def fetch_range(
        self,
        prefix: str,
        timeout: float | None = None,
    ) -> RangeResponse | None:
        """Fetch all breached suffixes for a digest prefix.

        Args:
            prefix: 5 hex character SHA-1 prefix
            timeout: Override the client timeout for this lookup

        Returns:
            RangeResponse, or None when the service is unavailable

        Raises:
            ValueError: If prefix is not 5 hex characters
        """
        prefix = prefix.upper()
        if not _PREFIX.match(prefix):
            raise ValueError("Range prefix must be 5 hex characters")

        if self._session is not None and not self._session.closed:
            return await self._fetch(self._session, prefix, timeout)

        async with aiohttp.ClientSession() as session:
            return await self._fetch(session, prefix, timeout)

    async def _fetch(
        self,
        session: aiohttp.ClientSession,
        prefix: str,
        timeout: float | None,
    ) -> RangeResponse | None:
        headers = {"User-Agent": self.user_agent}
        if self.add_padding:
            headers["Add-Padding"] = "true"

        try:
            async with session.get(
                self.range_url(prefix),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout or self.timeout),
            ) as response:
                if response.status != 200:
                    logger.warning(f"Range lookup for {prefix} failed: HTTP {response.status}")
                    return None
                text = await response.text()

        except asyncio.TimeoutError:
            logger.warning(f"Range lookup for {prefix} timed out")
            return None
        except aiohttp.ClientError as e:
            logger.warning(f"Range lookup for {prefix} failed: {e}")
            return None
        except UnicodeDecodeError:
            logger.warning(f"Range lookup for {prefix} returned undecodable content")
            return None

        result = parse_range_response(text)
        if not result.records and result.skipped_lines:
            logger.warning(f"Range lookup for {prefix} returned no parseable lines")
            return None

        if result.skipped_lines:
            logger.info(f"Skipped {result.skipped_lines} malformed line(s) for {prefix}")

        return result
