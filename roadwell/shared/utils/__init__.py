"""Shared utilities: datetime, generators."""

from roadwell.shared.utils.datetime import ensure_utc, parse_timestamp, utc_now
from roadwell.shared.utils.generators import generate_cuid

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "parse_timestamp",
    "utc_now",
]
