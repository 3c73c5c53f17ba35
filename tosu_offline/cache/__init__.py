"""
Caching module for CMS catalog data.

Provides:
- Timestamped envelopes with legacy raw-format tolerance
- Reactive single-entry eviction when the store is full
- Namespace-scoped cache proxies used by the domain proxies
"""

from .envelope import CacheEnvelope, EnvelopeCodec, now_ms
from .eviction import evict_oldest, find_oldest
from .proxy import CacheProxy

__all__ = [
    "CacheEnvelope",
    "CacheProxy",
    "EnvelopeCodec",
    "evict_oldest",
    "find_oldest",
    "now_ms",
]
