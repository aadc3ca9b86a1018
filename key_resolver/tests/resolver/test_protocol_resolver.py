from collections.abc import Callable
from unittest.mock import Mock

import pytest

from key_resolver.models.certificate import Certificate, Protocol, Validity
from key_resolver.resolver.predicates import AcceptancePolicy
from key_resolver.resolver.protocol_resolver import ProtocolResolver
from key_resolver.resolver.state import AddressSlots, ResolutionState, Stage


def _state(sender: str | None, *recipients: str) -> ResolutionState:
    return ResolutionState.initial(sender, recipients).advance(Stage.OVERRIDES_APPLIED)


@pytest.fixture
def store() -> Mock:
    store = Mock()
    store.find_best_candidates.return_value = []
    return store


def test_resolve_advances_to_protocol_stage(store: Mock) -> None:
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve(_state(None), Protocol.OPENPGP)
    state = resolver.resolve(state, Protocol.CMS)

    assert state.stage is Stage.CMS_RESOLVED


def test_skip_advances_without_lookups(store: Mock) -> None:
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=True)

    state = resolver.skip(_state("alice@example.net", "bob@example.net"), Protocol.OPENPGP)

    assert state.stage is Stage.OPENPGP_RESOLVED
    store.find_best_candidates.assert_not_called()


def test_resolve_signing_looks_up_secret_keys(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    signing = make_certificate("alice@example.net", secret=True)
    store.find_best_candidates.return_value = [signing]
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=True)

    state = resolver.resolve_signing(_state("alice@example.net"), Protocol.OPENPGP)

    assert state.signing == {Protocol.OPENPGP: (signing,)}
    store.find_best_candidates.assert_called_once_with(
        "alice@example.net", Protocol.OPENPGP, require_secret=True, for_encryption=False
    )


def test_resolve_signing_rejects_unacceptable_candidates(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    store.find_best_candidates.return_value = [make_certificate("alice@example.net", secret=False)]
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=True)

    state = resolver.resolve_signing(_state("alice@example.net"), Protocol.OPENPGP)

    assert not state.has_signing(Protocol.OPENPGP)


def test_resolve_signing_keeps_existing_signing_keys(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    own = make_certificate("alice@example.net", secret=True)
    state = _state("alice@example.net").with_signing(Protocol.OPENPGP, [own])
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=True)

    assert resolver.resolve_signing(state, Protocol.OPENPGP) is state
    store.find_best_candidates.assert_not_called()


def test_resolve_signing_is_skipped_when_not_signing(store: Mock) -> None:
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    resolver.resolve_signing(_state("alice@example.net"), Protocol.CMS)

    store.find_best_candidates.assert_not_called()


def test_resolve_encryption_fills_unresolved_addresses(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    bob = make_certificate("bob@example.net", Protocol.CMS)
    store.find_best_candidates.side_effect = lambda address, *_, **__: (
        [bob] if address == "bob@example.net" else []
    )
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve_encryption(
        _state(None, "bob@example.net", "carol@example.net"), Protocol.CMS
    )

    assert state.encryption_for(Protocol.CMS) == {
        "bob@example.net": (bob,),
        "carol@example.net": (),
    }
    assert state.unresolved(Protocol.CMS) == ("carol@example.net",)


def test_resolve_encryption_keeps_override_slots(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    override = make_certificate("bob@example.net", tag="override")
    state = _state(None, "bob@example.net").with_slots(
        {"bob@example.net": AddressSlots(openpgp=(override,))}
    )
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve_encryption(state, Protocol.OPENPGP)

    assert state.encryption["bob@example.net"].openpgp == (override,)
    store.find_best_candidates.assert_not_called()


def test_resolve_encryption_copies_single_protocol_common_override(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    override = make_certificate("bob@example.net", Protocol.CMS, tag="override")
    state = _state(None, "bob@example.net").with_slots(
        {"bob@example.net": AddressSlots(common=(override,))}
    )
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve_encryption(state, Protocol.OPENPGP)
    state = resolver.resolve_encryption(state, Protocol.CMS)

    slots = state.encryption["bob@example.net"]
    assert slots.openpgp == ()
    assert slots.cms == (override,)
    store.find_best_candidates.assert_not_called()


@pytest.mark.parametrize("common_protocol", [Protocol.OPENPGP, Protocol.CMS])
def test_resolve_encryption_common_override_replaces_protocol_override(
    store: Mock, make_certificate: Callable[..., Certificate], common_protocol: Protocol
) -> None:
    specific = make_certificate("bob@example.net", tag="specific")
    common = make_certificate("bob@example.net", common_protocol, tag="common")
    state = _state(None, "bob@example.net").with_slots(
        {"bob@example.net": AddressSlots(openpgp=(specific,), common=(common,))}
    )
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve_encryption(state, Protocol.OPENPGP)
    state = resolver.resolve_encryption(state, Protocol.CMS)

    slots = state.encryption["bob@example.net"]
    assert slots.for_protocol(common_protocol) == (common,)
    assert specific not in slots.openpgp
    store.find_best_candidates.assert_not_called()


def test_resolve_encryption_mixed_common_override_clears_protocol_slots(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    openpgp = make_certificate("bob@example.net", tag="common")
    cms = make_certificate("bob@example.net", Protocol.CMS, tag="common")
    specific = make_certificate("bob@example.net", Protocol.CMS, tag="specific")
    state = _state(None, "bob@example.net").with_slots(
        {"bob@example.net": AddressSlots(cms=(specific,), common=(openpgp, cms))}
    )
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    state = resolver.resolve_encryption(state, Protocol.OPENPGP)
    state = resolver.resolve_encryption(state, Protocol.CMS)

    slots = state.encryption["bob@example.net"]
    assert slots.openpgp == ()
    assert slots.cms == ()
    assert slots.common == (openpgp, cms)


def test_single_candidate_needs_validity_for_address(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    store.find_best_candidates.return_value = [
        make_certificate("bob@example.net", validity=Validity.UNKNOWN)
    ]
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    assert resolver.resolve_recipient("bob@example.net", Protocol.OPENPGP) == []


def test_group_is_accepted_only_as_a_whole(
    store: Mock, make_certificate: Callable[..., Certificate]
) -> None:
    bob = make_certificate("bob@example.net", validity=Validity.UNKNOWN)
    carol = make_certificate("carol@example.net")
    revoked = make_certificate("dave@example.net", revoked=True)
    resolver = ProtocolResolver(store, AcceptancePolicy(), sign=False)

    store.find_best_candidates.return_value = [bob, carol]
    assert resolver.resolve_recipient("team@example.net", Protocol.OPENPGP) == [bob, carol]

    store.find_best_candidates.return_value = [bob, carol, revoked]
    assert resolver.resolve_recipient("team@example.net", Protocol.OPENPGP) == []
