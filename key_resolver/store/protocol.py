"""
Certificate store protocol definition.

The resolver only reads from the store. Implementations can wrap GnuPG, an LDAP
directory, or an in-memory pool without changing the rest of the codebase.
"""

from typing import Protocol as TypingProtocol
from typing import runtime_checkable

from key_resolver.models.certificate import Certificate, Protocol


@runtime_checkable
class CertificateStore(TypingProtocol):
    """
    Abstract interface for certificate lookups.

    Lookups must be deterministic for a fixed snapshot of the store.
    """

    def find_best_candidates(
        self,
        address: str,
        protocol: Protocol,
        *,
        require_secret: bool,
        for_encryption: bool,
    ) -> list[Certificate]:
        """
        Find the best certificate(s) for a mailbox.

        Args:
            address: Normalized email address.
            protocol: Protocol to search in.
            require_secret: Only return certificates with secret key material.
            for_encryption: Rank by encryption capability instead of signing capability.

        Returns:
            An empty list, a single certificate, or all members of a group
            configured for the address.
        """
        ...

    def find_by_identifier(self, identifier: str) -> Certificate | None:
        """
        Look up a certificate by fingerprint or key ID.

        Args:
            identifier: Fingerprint, long key ID or short key ID.

        Returns:
            The certificate, or None if the store does not know it.
        """
        ...
