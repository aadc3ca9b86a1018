"""
Certificate predicates.

Classify certificates as usable for signing or encryption and compute their
validity with respect to an address.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from key_resolver.models.certificate import Certificate, Validity

logger = structlog.get_logger(__name__)

ComplianceCheck = Callable[[Certificate, str], bool]


def default_compliance_check(certificate: Certificate, mode: str) -> bool:
    """Accept certificates that declare compliance with the given mode."""
    return mode in certificate.compliance_modes


def _is_usable(certificate: Certificate) -> bool:
    return not (certificate.is_revoked or certificate.is_expired or certificate.is_disabled)


def is_valid_signing_certificate(certificate: Certificate) -> bool:
    return _is_usable(certificate) and certificate.can_sign and certificate.has_secret


def is_valid_encryption_certificate(certificate: Certificate) -> bool:
    return _is_usable(certificate) and certificate.can_encrypt


def certificate_validity(certificate: Certificate, address: str) -> Validity:
    """
    Validity of a certificate for an address.

    Uses the user ID matching the address or, if none matches, the highest
    validity of all user IDs.
    """
    overall = Validity.UNKNOWN
    for uid in certificate.user_ids:
        if uid.address is not None and uid.address.lower() == address.lower():
            return uid.validity
        overall = max(overall, uid.validity)
    return overall


def minimum_validity(certificates: Iterable[Certificate], address: str) -> Validity:
    """Lowest validity among certificates for an address, UNKNOWN if there are none."""
    return min(
        (certificate_validity(c, address) for c in certificates),
        default=Validity.UNKNOWN,
    )


@dataclass(frozen=True, kw_only=True)
class AcceptancePolicy:
    """
    Decides which certificates may be picked automatically.

    Attributes:
        minimum_validity: Lowest validity of the address's user ID for encryption.
        compliance: Active compliance mode, or None.
        compliance_check: Predicate deciding compliance of a certificate with a mode.
    """

    minimum_validity: Validity = Validity.MARGINAL
    compliance: str | None = None
    compliance_check: ComplianceCheck = default_compliance_check

    def is_acceptable_signing_certificate(self, certificate: Certificate) -> bool:
        if not is_valid_signing_certificate(certificate):
            return False
        if not self._is_compliant(certificate):
            logger.debug(
                "Rejected signing certificate: not compliant",
                fingerprint=certificate.fingerprint,
                compliance=self.compliance,
            )
            return False
        return True

    def is_acceptable_encryption_certificate(
        self, certificate: Certificate, address: str | None = None
    ) -> bool:
        """
        Check a certificate for encryption.

        Args:
            certificate: Candidate certificate.
            address: If given, a user ID for this address must reach the minimum validity.
        """
        if not is_valid_encryption_certificate(certificate):
            return False
        if not self._is_compliant(certificate):
            logger.debug(
                "Rejected encryption certificate: not compliant",
                fingerprint=certificate.fingerprint,
                compliance=self.compliance,
            )
            return False
        if not address:
            return True
        return any(
            uid.address == address and uid.validity >= self.minimum_validity
            for uid in certificate.user_ids
        )

    def _is_compliant(self, certificate: Certificate) -> bool:
        if self.compliance is None:
            return True
        return self.compliance_check(certificate, self.compliance)
