"""
Breach evaluation: encode, fetch and match.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from pwnedcheck.breach.encoder import encode_password
from pwnedcheck.breach.models import BreachQuery, BreachVerdict, RangeResponse

logger = logging.getLogger(__name__)


class RangeFetcher(Protocol):
    """Anything that can answer a range lookup for a prefix."""

    async def fetch_range(
        self,
        prefix: str,
        timeout: float | None = None,
    ) -> RangeResponse | None:
        ...


def matches(query: BreachQuery, response: RangeResponse | None) -> bool:
    """Check whether a range response lists the query suffix.

    Both sides are uppercased before comparison. Padding records
    (count 0) never match.
    """
    if response is None:
        return False

    suffix = query.suffix.upper()
    for record in response:
        if record.count > 0 and record.suffix.upper() == suffix:
            return True
    return False


class BreachEvaluator:
    """Single decision point for "has this password been breached".

    Fails open: if the range service cannot be reached the password
    is reported as not breached.
    """

    def __init__(self, fetcher: RangeFetcher):
        self.fetcher = fetcher

    async def evaluate(self, password: str, timeout: float | None = None) -> BreachVerdict:
        """Evaluate a password against the breach corpus.

        Args:
            password: Password to check (NOT stored or logged)
            timeout: Deadline in seconds for the range lookup

        Returns:
            BreachVerdict
        """
        query = encode_password(password)

        try:
            response = await self.fetcher.fetch_range(query.prefix, timeout=timeout)
        except Exception as e:
            logger.error(f"Range fetcher raised for {query.prefix}: {e!r}")
            response = None

        if response is None:
            logger.info(f"Breach check for {query.prefix} unavailable, allowing password")
            return BreachVerdict(is_breached=False)

        return BreachVerdict(is_breached=matches(query, response))

    async def is_breached_async(self, password: str, timeout: float | None = None) -> bool:
        """Awaitable breach check."""
        verdict = await self.evaluate(password, timeout=timeout)
        return verdict.is_breached

    def is_breached(self, password: str, timeout: float | None = None) -> bool:
        """Blocking breach check.

        Safe to call from a thread that is already running an event loop:
        the lookup then runs on its own loop in a worker thread, and this
        call blocks until it finishes. Async callers should prefer
        ``is_breached_async``.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.is_breached_async(password, timeout=timeout))

        logger.debug("Blocking breach check called inside a running loop, using worker thread")
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(asyncio.run, self.is_breached_async(password, timeout=timeout))
            return future.result()
