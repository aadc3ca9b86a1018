"""
Caching wrapper for certificate stores.

Keeps lookup results warm across many resolutions that share one store.
"""

import structlog

from key_resolver.core.cache import LRUCache
from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.store.protocol import CertificateStore

logger = structlog.get_logger(__name__)

_MISSING = object()


class CachingCertificateStore:
    """
    LRU cache in front of another certificate store.

    Negative lookups are cached too. Call invalidate() after the underlying
    store changes.
    """

    def __init__(self, store: CertificateStore, max_size: int = 1000) -> None:
        """
        Args:
            store: Store to delegate cache misses to.
            max_size: Maximum number of lookups to cache per lookup kind.
        """
        self._store = store
        self._candidates: LRUCache[tuple[Certificate, ...]] = LRUCache(max_size)
        self._identifiers: LRUCache[object] = LRUCache(max_size)

    def find_best_candidates(
        self,
        address: str,
        protocol: Protocol,
        *,
        require_secret: bool,
        for_encryption: bool,
    ) -> list[Certificate]:
        key = (address, protocol, require_secret, for_encryption)
        if (cached := self._candidates.get(key)) is not None:
            return list(cached)

        candidates = self._store.find_best_candidates(
            address, protocol, require_secret=require_secret, for_encryption=for_encryption
        )
        self._candidates.put(key, tuple(candidates))
        logger.debug("Cached candidate lookup", address=address, protocol=protocol.value)
        return list(candidates)

    def find_by_identifier(self, identifier: str) -> Certificate | None:
        key = identifier.strip().upper()
        cached = self._identifiers.get(key)
        if cached is _MISSING:
            return None
        if cached is not None:
            return cached

        certificate = self._store.find_by_identifier(identifier)
        self._identifiers.put(key, certificate if certificate is not None else _MISSING)
        return certificate

    def invalidate(self) -> None:
        """Drop all cached lookups."""
        logger.debug("Dropping cached lookups", entries=len(self))
        self._candidates.clear()
        self._identifiers.clear()

    def __len__(self) -> int:
        return len(self._candidates) + len(self._identifiers)
