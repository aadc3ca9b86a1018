"""
In-memory certificate store.

Useful for tests and for callers that already hold a validated pool of
certificates (e.g. loaded with the pgpy or X.509 adapters).
"""

from collections.abc import Iterable

import structlog

from key_resolver.addresses import normalize_address
from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.resolver.predicates import certificate_validity

logger = structlog.get_logger(__name__)


class MemoryCertificateStore:
    """
    Certificate store backed by a list of certificates and named groups.

    Example:
        store = MemoryCertificateStore([alice_pgp, alice_smime])
        store.add_group("team@example.net", Protocol.OPENPGP, [bob_pgp, carol_pgp])
        store.find_best_candidates("alice@example.net", Protocol.OPENPGP,
                                   require_secret=False, for_encryption=True)
    """

    def __init__(self, certificates: Iterable[Certificate] = ()) -> None:
        self._certificates: list[Certificate] = []
        self._groups: dict[tuple[str, Protocol], tuple[Certificate, ...]] = {}
        for certificate in certificates:
            self.add(certificate)

    def add(self, certificate: Certificate) -> None:
        """Add a certificate, replacing any certificate with the same fingerprint."""
        self._certificates = [
            c for c in self._certificates if c.fingerprint != certificate.fingerprint
        ]
        self._certificates.append(certificate)

    def add_group(
        self, address: str, protocol: Protocol, certificates: Iterable[Certificate]
    ) -> None:
        """
        Register a group of certificates that an address resolves to.

        Args:
            address: Mailbox the group is known under.
            protocol: Protocol of the group members.
            certificates: Group members, returned as-is by lookups.
        """
        members = tuple(certificates)
        if any(member.protocol != protocol for member in members):
            msg = "All group members must use the group's protocol"
            raise ValueError(msg)
        self._groups[(normalize_address(address), protocol)] = members

    def find_best_candidates(
        self,
        address: str,
        protocol: Protocol,
        *,
        require_secret: bool,
        for_encryption: bool,
    ) -> list[Certificate]:
        if (group := self._groups.get((address, protocol))) is not None:
            logger.debug("Address resolves to group", address=address, size=len(group))
            return list(group)

        usable = [
            c
            for c in self._certificates
            if c.protocol == protocol
            and address in c.addresses
            and self._is_usable(c, require_secret=require_secret, for_encryption=for_encryption)
        ]
        if not usable:
            return []
        return [max(usable, key=lambda c: certificate_validity(c, address))]

    def find_by_identifier(self, identifier: str) -> Certificate | None:
        return next((c for c in self._certificates if c.matches_identifier(identifier)), None)

    def __len__(self) -> int:
        return len(self._certificates)

    @staticmethod
    def _is_usable(certificate: Certificate, *, require_secret: bool, for_encryption: bool) -> bool:
        if certificate.is_revoked or certificate.is_expired or certificate.is_disabled:
            return False
        if require_secret and not certificate.has_secret:
            return False
        return certificate.can_encrypt if for_encryption else certificate.can_sign
