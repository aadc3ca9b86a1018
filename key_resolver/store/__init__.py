"""
Certificate stores and adapters.

This module provides:
- The CertificateStore protocol consumed by the resolver
- An in-memory store and a caching wrapper
- An adapter building certificates from X.509 certificates (cryptography)

The OpenPGP adapter lives in key_resolver.store.pgpy_loader and is imported
explicitly, so the rest of the package does not depend on pgpy being importable.
"""

from key_resolver.store.caching import CachingCertificateStore
from key_resolver.store.memory import MemoryCertificateStore
from key_resolver.store.protocol import CertificateStore
from key_resolver.store.x509_loader import certificate_from_x509, load_smime_certificate

__all__ = [
    "CertificateStore",
    "MemoryCertificateStore",
    "CachingCertificateStore",
    "certificate_from_x509",
    "load_smime_certificate",
]
