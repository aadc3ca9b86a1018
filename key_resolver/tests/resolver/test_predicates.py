from collections.abc import Callable

import pytest

from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity
from key_resolver.resolver.predicates import (
    AcceptancePolicy,
    certificate_validity,
    is_valid_encryption_certificate,
    is_valid_signing_certificate,
    minimum_validity,
)


def test_certificate_validity_uses_matching_user_id(
    make_certificate: Callable[..., Certificate],
) -> None:
    certificate = make_certificate(
        "bob@example.net",
        validity=Validity.MARGINAL,
        extra_user_ids=(UserId(address="bob@example.org", validity=Validity.ULTIMATE),),
    )

    assert certificate_validity(certificate, "bob@example.net") is Validity.MARGINAL
    assert certificate_validity(certificate, "BOB@example.org") is Validity.ULTIMATE


def test_certificate_validity_falls_back_to_best_user_id(
    make_certificate: Callable[..., Certificate],
) -> None:
    certificate = make_certificate(
        "bob@example.net",
        validity=Validity.MARGINAL,
        extra_user_ids=(UserId(address=None, validity=Validity.FULL),),
    )

    assert certificate_validity(certificate, "team@example.net") is Validity.FULL


def test_certificate_validity_without_user_ids_is_unknown(
    make_certificate: Callable[..., Certificate],
) -> None:
    assert certificate_validity(make_certificate(None), "bob@example.net") is Validity.UNKNOWN


def test_minimum_validity(make_certificate: Callable[..., Certificate]) -> None:
    full = make_certificate("bob@example.net", validity=Validity.FULL)
    marginal = make_certificate("bob@example.net", validity=Validity.MARGINAL, tag="m")

    assert minimum_validity([full, marginal], "bob@example.net") is Validity.MARGINAL
    assert minimum_validity([], "bob@example.net") is Validity.UNKNOWN


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        ({"secret": True}, True),
        ({"secret": False}, False),
        ({"secret": True, "can_sign": False}, False),
        ({"secret": True, "revoked": True}, False),
        ({"secret": True, "expired": True}, False),
        ({"secret": True, "disabled": True}, False),
    ],
)
def test_is_valid_signing_certificate(
    make_certificate: Callable[..., Certificate], kwargs: dict, expected: bool
) -> None:
    assert is_valid_signing_certificate(make_certificate(**kwargs)) is expected


@pytest.mark.parametrize(
    ("kwargs", "expected"),
    [
        ({}, True),
        ({"can_encrypt": False}, False),
        ({"revoked": True}, False),
        ({"expired": True}, False),
        ({"disabled": True}, False),
    ],
)
def test_is_valid_encryption_certificate(
    make_certificate: Callable[..., Certificate], kwargs: dict, expected: bool
) -> None:
    assert is_valid_encryption_certificate(make_certificate(**kwargs)) is expected


@pytest.mark.parametrize(
    ("validity", "expected"),
    [
        (Validity.UNKNOWN, False),
        (Validity.NEVER, False),
        (Validity.MARGINAL, True),
        (Validity.FULL, True),
        (Validity.ULTIMATE, True),
    ],
)
def test_encryption_acceptance_requires_minimum_validity_for_address(
    make_certificate: Callable[..., Certificate], validity: Validity, expected: bool
) -> None:
    policy = AcceptancePolicy()
    certificate = make_certificate("bob@example.net", validity=validity)

    assert policy.is_acceptable_encryption_certificate(certificate, "bob@example.net") is expected


def test_encryption_acceptance_without_address_ignores_validity(
    make_certificate: Callable[..., Certificate],
) -> None:
    policy = AcceptancePolicy(minimum_validity=Validity.ULTIMATE)
    certificate = make_certificate("bob@example.net", validity=Validity.UNKNOWN)

    assert policy.is_acceptable_encryption_certificate(certificate)
    assert not policy.is_acceptable_encryption_certificate(certificate, "bob@example.net")


def test_encryption_acceptance_requires_user_id_for_address(
    make_certificate: Callable[..., Certificate],
) -> None:
    certificate = make_certificate("bob@example.net", validity=Validity.ULTIMATE)

    assert not AcceptancePolicy().is_acceptable_encryption_certificate(
        certificate, "carol@example.net"
    )


def test_compliance_mode_filters_certificates(
    make_certificate: Callable[..., Certificate],
) -> None:
    policy = AcceptancePolicy(compliance="de-vs")
    compliant = make_certificate(secret=True, compliance_modes=frozenset({"de-vs"}))
    other = make_certificate(secret=True, tag="other")

    assert policy.is_acceptable_signing_certificate(compliant)
    assert not policy.is_acceptable_signing_certificate(other)
    assert policy.is_acceptable_encryption_certificate(compliant, "alice@example.net")
    assert not policy.is_acceptable_encryption_certificate(other, "alice@example.net")


def test_custom_compliance_check_receives_mode(
    make_certificate: Callable[..., Certificate],
) -> None:
    calls = []

    def check(certificate: Certificate, mode: str) -> bool:
        calls.append(mode)
        return certificate.protocol is Protocol.CMS

    policy = AcceptancePolicy(compliance="de-vs", compliance_check=check)

    assert policy.is_acceptable_encryption_certificate(make_certificate(protocol=Protocol.CMS))
    assert not policy.is_acceptable_encryption_certificate(make_certificate())
    assert calls == ["de-vs", "de-vs"]
