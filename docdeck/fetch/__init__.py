"""
Documentation page fetching.

This package handles HTTP fetching with rate-limit retry.
"""

from .fetcher import FetchResult, Fetcher

__all__ = [
    "FetchResult",
    "Fetcher",
]
