"""
Pwned Passwords breach checking.

Encodes passwords into k-anonymity range queries, fetches candidate
suffixes from the range service and decides whether a password has
appeared in a breach.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

from pwnedcheck.breach.models import (
    BreachQuery,
    BreachVerdict,
    RangeRecord,
    RangeResponse,
    RiskLevel,
)
from pwnedcheck.breach.encoder import encode_password, query_from_digest
from pwnedcheck.breach.client import RangeClient, parse_range_response
from pwnedcheck.breach.evaluator import BreachEvaluator, RangeFetcher

__all__ = [
    "BreachEvaluator",
    "BreachQuery",
    "BreachVerdict",
    "RangeClient",
    "RangeFetcher",
    "RangeRecord",
    "RangeResponse",
    "RiskLevel",
    "encode_password",
    "parse_range_response",
    "query_from_digest",
]
