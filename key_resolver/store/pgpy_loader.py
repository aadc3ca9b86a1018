"""
OpenPGP certificate adapter using the pgpy library.

Builds resolver certificates from ASCII-armored OpenPGP keys. pgpy does not
maintain a web of trust, so user ID validity is supplied by the caller.
"""

from collections.abc import Mapping

import pgpy

from key_resolver.addresses import extract_address
from key_resolver.exceptions import CertificateLoadError
from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity


def _fingerprint(key: pgpy.PGPKey) -> str:
    return str(key.fingerprint).replace(" ", "").upper()


def _all_keys(key: pgpy.PGPKey) -> list[pgpy.PGPKey]:
    return [key, *key.subkeys.values()]


def _is_revoked(key: pgpy.PGPKey) -> bool:
    return any(True for _ in key.revocation_signatures)


def _user_ids(
    key: pgpy.PGPKey, validity: Validity | Mapping[str, Validity]
) -> tuple[UserId, ...]:
    user_ids = []
    for uid in key.userids:
        if not uid.is_uid:
            continue
        address = extract_address(uid.email) if uid.email else None
        if isinstance(validity, Mapping):
            uid_validity = validity.get(address, Validity.UNKNOWN) if address else Validity.UNKNOWN
        else:
            uid_validity = validity
        user_ids.append(UserId(address=address, name=uid.name or "", validity=uid_validity))
    return tuple(user_ids)


def certificate_from_pgpy_key(
    key: pgpy.PGPKey,
    *,
    validity: Validity | Mapping[str, Validity] = Validity.UNKNOWN,
    is_disabled: bool = False,
    compliance_modes: frozenset[str] = frozenset(),
) -> Certificate:
    """
    Build a certificate from a pgpy key.

    Args:
        key: Primary key, public or private.
        validity: Validity for all user IDs, or per normalized address.
        is_disabled: Whether the key is disabled in the caller's keyring.
        compliance_modes: Compliance modes the key satisfies.

    Returns:
        An OpenPGP certificate.
    """
    keys = _all_keys(key)
    return Certificate(
        protocol=Protocol.OPENPGP,
        fingerprint=_fingerprint(key),
        key_id=str(key.fingerprint.keyid),
        user_ids=_user_ids(key, validity),
        is_revoked=_is_revoked(key),
        is_expired=bool(key.is_expired),
        is_disabled=is_disabled,
        can_sign=any(k.key_algorithm.can_sign for k in keys),
        can_encrypt=any(k.key_algorithm.can_encrypt for k in keys),
        has_secret=not key.is_public,
        compliance_modes=compliance_modes,
    )


def load_openpgp_certificate(
    armored_key: str,
    *,
    validity: Validity | Mapping[str, Validity] = Validity.UNKNOWN,
    is_disabled: bool = False,
    compliance_modes: frozenset[str] = frozenset(),
) -> Certificate:
    """
    Load an OpenPGP certificate from ASCII-armored format.

    Args:
        armored_key: ASCII-armored public or private key.
        validity: Validity for all user IDs, or per normalized address.
        is_disabled: Whether the key is disabled in the caller's keyring.
        compliance_modes: Compliance modes the key satisfies.

    Returns:
        An OpenPGP certificate.

    Raises:
        CertificateLoadError: If the key cannot be parsed.
    """
    try:
        key, _ = pgpy.PGPKey.from_blob(armored_key)
    except Exception as e:
        msg = f"Failed to load OpenPGP key: {e}"
        raise CertificateLoadError(msg) from e
    return certificate_from_pgpy_key(
        key,
        validity=validity,
        is_disabled=is_disabled,
        compliance_modes=compliance_modes,
    )
