"""
Key resolver for OpenPGP and S/MIME.

Selects the certificates to sign and encrypt an outgoing message with, across
OpenPGP and S/MIME, or reports which recipients still need a manual choice.

Example:
    ```python
    from key_resolver import KeyResolver, MemoryCertificateStore, Protocol, ResolverConfig

    store = MemoryCertificateStore(certificates)
    resolver = KeyResolver(store, ResolverConfig(preferred_protocol=Protocol.OPENPGP))
    resolver.set_sender("alice@example.net")
    resolver.set_recipients(["bob@example.net", "carol@example.net"])

    result = resolver.resolve()
    if result.is_resolved:
        print(result.solution.protocol, result.solution.encryption_certificates)
    else:
        print(result.unresolved_recipients(Protocol.OPENPGP))
    ```
"""

from key_resolver.addresses import normalize_address
from key_resolver.config import ResolverConfig
from key_resolver.exceptions import (
    CertificateLoadError,
    InvalidAddressError,
    KeyResolverError,
    OverrideConflictError,
    ResolverStateError,
)
from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity
from key_resolver.models.resolution import (
    OverrideProtocol,
    ResolutionResult,
    ResolutionStatus,
    Solution,
    SolutionProtocol,
)
from key_resolver.resolver.core import KeyResolver
from key_resolver.store import (
    CachingCertificateStore,
    CertificateStore,
    MemoryCertificateStore,
    load_smime_certificate,
)

__version__ = "0.1.0"

__all__ = [
    # Main resolver
    "KeyResolver",
    "ResolverConfig",
    "normalize_address",
    # Models
    "Certificate",
    "UserId",
    "Protocol",
    "Validity",
    "OverrideProtocol",
    "SolutionProtocol",
    "ResolutionStatus",
    "Solution",
    "ResolutionResult",
    # Stores
    "CertificateStore",
    "MemoryCertificateStore",
    "CachingCertificateStore",
    "load_smime_certificate",
    # Exceptions
    "KeyResolverError",
    "InvalidAddressError",
    "OverrideConflictError",
    "ResolverStateError",
    "CertificateLoadError",
]
