"""
S/MIME certificate adapter using the cryptography library.

Builds resolver certificates from X.509 certificates. Chain validation and
revocation checking belong to the caller's PKI layer; their outcome is passed in.
"""

from collections.abc import Mapping
from datetime import datetime, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.x509.oid import NameOID

from key_resolver.addresses import extract_address
from key_resolver.exceptions import CertificateLoadError
from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity


def _addresses(cert: x509.Certificate) -> list[str]:
    values = [attr.value for attr in cert.subject.get_attributes_for_oid(NameOID.EMAIL_ADDRESS)]
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        values.extend(san.value.get_values_for_type(x509.RFC822Name))
    except x509.ExtensionNotFound:
        pass

    addresses: list[str] = []
    for value in values:
        address = extract_address(str(value))
        if address and address not in addresses:
            addresses.append(address)
    return addresses


def _common_name(cert: x509.Certificate) -> str:
    names = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    return str(names[0].value) if names else ""


def _capabilities(cert: x509.Certificate) -> tuple[bool, bool]:
    """Return (can_sign, can_encrypt) from the key usage extension."""
    try:
        usage = cert.extensions.get_extension_for_class(x509.KeyUsage).value
    except x509.ExtensionNotFound:
        return True, True
    can_sign = usage.digital_signature or usage.content_commitment
    can_encrypt = usage.key_encipherment or usage.data_encipherment or usage.key_agreement
    return can_sign, can_encrypt


def certificate_from_x509(
    cert: x509.Certificate,
    *,
    validity: Validity | Mapping[str, Validity] = Validity.UNKNOWN,
    has_secret: bool = False,
    is_revoked: bool = False,
    is_disabled: bool = False,
    compliance_modes: frozenset[str] = frozenset(),
    now: datetime | None = None,
) -> Certificate:
    """
    Build a certificate from a parsed X.509 certificate.

    Args:
        cert: The certificate.
        validity: Validity for all addresses, or per normalized address.
        has_secret: Whether the matching private key is available.
        is_revoked: Revocation status determined by the caller.
        is_disabled: Whether the certificate is disabled locally.
        compliance_modes: Compliance modes the certificate satisfies.
        now: Reference time for the expiry check. Defaults to the current time.

    Returns:
        An S/MIME certificate.
    """
    now = now or datetime.now(timezone.utc)
    user_ids = []
    for address in _addresses(cert):
        if isinstance(validity, Mapping):
            uid_validity = validity.get(address, Validity.UNKNOWN)
        else:
            uid_validity = validity
        user_ids.append(UserId(address=address, name=_common_name(cert), validity=uid_validity))
    can_sign, can_encrypt = _capabilities(cert)
    fingerprint = cert.fingerprint(hashes.SHA1()).hex().upper()

    return Certificate(
        protocol=Protocol.CMS,
        fingerprint=fingerprint,
        key_id=fingerprint[-16:],
        user_ids=tuple(user_ids),
        is_revoked=is_revoked,
        is_expired=not (cert.not_valid_before_utc <= now <= cert.not_valid_after_utc),
        is_disabled=is_disabled,
        can_sign=can_sign,
        can_encrypt=can_encrypt,
        has_secret=has_secret,
        compliance_modes=compliance_modes,
    )


def load_smime_certificate(
    data: bytes,
    *,
    validity: Validity | Mapping[str, Validity] = Validity.UNKNOWN,
    has_secret: bool = False,
    is_revoked: bool = False,
    is_disabled: bool = False,
    compliance_modes: frozenset[str] = frozenset(),
) -> Certificate:
    """
    Load an S/MIME certificate from PEM or DER.

    Raises:
        CertificateLoadError: If the certificate cannot be parsed.
    """
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            cert = x509.load_pem_x509_certificate(data)
        else:
            cert = x509.load_der_x509_certificate(data)
    except ValueError as e:
        msg = f"Failed to load X.509 certificate: {e}"
        raise CertificateLoadError(msg) from e
    return certificate_from_x509(
        cert,
        validity=validity,
        has_secret=has_secret,
        is_revoked=is_revoked,
        is_disabled=is_disabled,
        compliance_modes=compliance_modes,
    )
