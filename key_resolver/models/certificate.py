"""
Certificate domain models.
"""

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum


class Protocol(StrEnum):
    """Certificate ecosystems a message can be protected with."""

    OPENPGP = "openpgp"
    CMS = "cms"

    @property
    def display_name(self) -> str:
        match self:
            case Protocol.OPENPGP:
                return "OpenPGP"
            case Protocol.CMS:
                return "S/MIME"


class Validity(IntEnum):
    """Validity of a user ID, ordered from least to most trusted."""

    UNKNOWN = 0
    UNDEFINED = 1
    NEVER = 2
    MARGINAL = 3
    FULL = 4
    ULTIMATE = 5


@dataclass(frozen=True, kw_only=True)
class UserId:
    """
    A user identity attested by a certificate.

    Attributes:
        address: Normalized email address, or None if the identity carries none.
        name: Display name.
        validity: How confident the store is that the identity belongs to the certificate.
    """

    address: str | None
    name: str = ""
    validity: Validity = Validity.UNKNOWN


@dataclass(frozen=True, kw_only=True)
class Certificate:
    """
    A certificate as seen by the resolver.

    The object is owned by the certificate store; the resolver only reads it.

    Attributes:
        protocol: Ecosystem the certificate belongs to.
        fingerprint: Primary fingerprint, upper-case hex.
        key_id: Long key ID, upper-case hex.
        user_ids: Identities attested by the certificate.
        is_revoked: Whether the certificate has been revoked.
        is_expired: Whether the certificate has expired.
        is_disabled: Whether the owner disabled the certificate locally.
        can_sign: Whether the certificate is usable for signing.
        can_encrypt: Whether the certificate is usable for encryption.
        has_secret: Whether secret key material is available.
        compliance_modes: Compliance tokens (e.g. "de-vs") the certificate satisfies.
    """

    protocol: Protocol
    fingerprint: str
    key_id: str = ""
    user_ids: tuple[UserId, ...] = ()
    is_revoked: bool = False
    is_expired: bool = False
    is_disabled: bool = False
    can_sign: bool = False
    can_encrypt: bool = False
    has_secret: bool = False
    compliance_modes: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.fingerprint:
            msg = "Certificate fingerprint must not be empty"
            raise ValueError(msg)
        object.__setattr__(self, "fingerprint", self.fingerprint.upper())
        key_id = self.key_id or self.fingerprint[-16:]
        object.__setattr__(self, "key_id", key_id.upper())

    @property
    def short_key_id(self) -> str:
        return self.key_id[-8:]

    @property
    def addresses(self) -> tuple[str, ...]:
        """Addresses of all user IDs that carry one."""
        return tuple(uid.address for uid in self.user_ids if uid.address)

    def matches_identifier(self, identifier: str) -> bool:
        """
        Check whether a fingerprint or key ID refers to this certificate.

        Args:
            identifier: Full fingerprint, long key ID or short key ID, optionally 0x-prefixed.

        Returns:
            True if the identifier designates this certificate.
        """
        ident = identifier.strip().replace(" ", "").upper()
        if ident.startswith("0X"):
            ident = ident[2:]
        if not ident:
            return False
        return ident in (self.fingerprint, self.key_id, self.short_key_id)
