"""
Resolution domain models.

Overrides, solutions and the result handed back to callers.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from key_resolver.models.certificate import Certificate, Protocol


class OverrideProtocol(StrEnum):
    """Protocol an override entry applies to."""

    OPENPGP = "openpgp"
    CMS = "cms"
    FROM_CERTIFICATE = "from-certificate"

    @property
    def protocol(self) -> Protocol | None:
        """The concrete protocol, or None if taken from the referenced certificates."""
        if self is OverrideProtocol.FROM_CERTIFICATE:
            return None
        return Protocol(self.value)

    @classmethod
    def for_protocol(cls, protocol: Protocol) -> "OverrideProtocol":
        return cls(protocol.value)


class SolutionProtocol(StrEnum):
    """Protocol of a finalized solution."""

    OPENPGP = "openpgp"
    CMS = "cms"
    MIXED = "mixed"

    @property
    def protocol(self) -> Protocol | None:
        """The single protocol used, or None for a mixed solution."""
        if self is SolutionProtocol.MIXED:
            return None
        return Protocol(self.value)

    @classmethod
    def for_protocol(cls, protocol: Protocol) -> "SolutionProtocol":
        return cls(protocol.value)


class ResolutionStatus(StrEnum):
    """Overall outcome of a resolution."""

    ALL_RESOLVED = "all-resolved"
    NEEDS_DISAMBIGUATION = "needs-disambiguation"
    ERROR = "error"


@dataclass(frozen=True, kw_only=True)
class Solution:
    """
    An assignment of signing and encryption certificates.

    Attributes:
        protocol: Protocol used by the solution, MIXED if it spans both.
        signing_certificates: Certificates to sign with.
        encryption_certificates: Certificates to encrypt to, per recipient address.
            Unresolved recipients map to an empty tuple.
    """

    protocol: SolutionProtocol
    signing_certificates: tuple[Certificate, ...] = ()
    encryption_certificates: Mapping[str, tuple[Certificate, ...]] = field(default_factory=dict)

    @property
    def unresolved_recipients(self) -> tuple[str, ...]:
        return tuple(
            address for address, certs in self.encryption_certificates.items() if not certs
        )

    @property
    def is_complete(self) -> bool:
        return not self.unresolved_recipients


@dataclass(frozen=True, kw_only=True)
class ResolutionResult:
    """
    Outcome of a resolution.

    Attributes:
        status: Whether everything was resolved, the caller must choose, or the
            configuration is contradictory.
        solution: The solution to use, or the best partial proposal when the caller
            must choose. None on error.
        alternative: The other protocol's complete solution when both protocols resolve
            every recipient on their own and no protocol was forced.
        unresolved: Recipient addresses without certificates, per protocol.
        signing_certificates: Signing certificates found, per protocol.
        encryption_certificates: Encryption certificates found, per protocol and address.
        error: Description of the conflict when status is ERROR.
    """

    status: ResolutionStatus
    solution: Solution | None = None
    alternative: Solution | None = None
    unresolved: Mapping[Protocol, tuple[str, ...]] = field(default_factory=dict)
    signing_certificates: Mapping[Protocol, tuple[Certificate, ...]] = field(default_factory=dict)
    encryption_certificates: Mapping[Protocol, Mapping[str, tuple[Certificate, ...]]] = field(
        default_factory=dict
    )
    error: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status is ResolutionStatus.ALL_RESOLVED

    @property
    def needs_disambiguation(self) -> bool:
        return self.status is ResolutionStatus.NEEDS_DISAMBIGUATION

    @property
    def is_error(self) -> bool:
        return self.status is ResolutionStatus.ERROR

    def unresolved_recipients(self, protocol: Protocol) -> tuple[str, ...]:
        """Addresses that have no certificate for the given protocol."""
        return self.unresolved.get(protocol, ())
