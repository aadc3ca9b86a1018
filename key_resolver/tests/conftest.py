import hashlib
from collections.abc import Callable

import pytest

from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity
from key_resolver.store.memory import MemoryCertificateStore
from key_resolver.tests.constants import (
    FULL_VALIDITY,
    PREFER_OPENPGP,
    PREFER_SMIME,
    SENDER_MIXED,
    SENDER_OPENPGP,
    SENDER_SMIME,
)


def _fingerprint(protocol: Protocol, email: str, tag: str) -> str:
    return hashlib.sha1(f"{protocol.value}:{email}:{tag}".encode()).hexdigest().upper()


@pytest.fixture
def make_certificate() -> Callable[..., Certificate]:
    def _make(
        email: str | None = "alice@example.net",
        protocol: Protocol = Protocol.OPENPGP,
        validity: Validity = Validity.FULL,
        *,
        tag: str = "",
        secret: bool = False,
        can_sign: bool = True,
        can_encrypt: bool = True,
        revoked: bool = False,
        expired: bool = False,
        disabled: bool = False,
        compliance_modes: frozenset[str] = frozenset(),
        extra_user_ids: tuple[UserId, ...] = (),
    ) -> Certificate:
        user_ids = (UserId(address=email, validity=validity),) if email else ()
        return Certificate(
            protocol=protocol,
            fingerprint=_fingerprint(protocol, email or "", tag),
            user_ids=user_ids + extra_user_ids,
            is_revoked=revoked,
            is_expired=expired,
            is_disabled=disabled,
            can_sign=can_sign,
            can_encrypt=can_encrypt,
            has_secret=secret,
            compliance_modes=compliance_modes,
        )

    return _make


@pytest.fixture
def keyring(
    make_certificate: Callable[..., Certificate],
) -> dict[tuple[str, Protocol], Certificate]:
    """Certificates of the reference mailboxes, keyed by (address, protocol)."""
    specs = [
        (SENDER_MIXED, Protocol.OPENPGP, Validity.ULTIMATE, True),
        (SENDER_MIXED, Protocol.CMS, Validity.FULL, True),
        (SENDER_OPENPGP, Protocol.OPENPGP, Validity.ULTIMATE, True),
        (SENDER_SMIME, Protocol.CMS, Validity.FULL, True),
        (PREFER_OPENPGP, Protocol.OPENPGP, Validity.ULTIMATE, False),
        (PREFER_OPENPGP, Protocol.CMS, Validity.FULL, False),
        (FULL_VALIDITY, Protocol.OPENPGP, Validity.FULL, False),
        (FULL_VALIDITY, Protocol.CMS, Validity.FULL, False),
        (PREFER_SMIME, Protocol.OPENPGP, Validity.MARGINAL, False),
        (PREFER_SMIME, Protocol.CMS, Validity.FULL, False),
    ]
    return {
        (email, protocol): make_certificate(email, protocol, validity, secret=secret)
        for email, protocol, validity, secret in specs
    }


@pytest.fixture
def store(keyring: dict[tuple[str, Protocol], Certificate]) -> MemoryCertificateStore:
    return MemoryCertificateStore(keyring.values())
