"""
Override keys.

Callers can force the certificates used for an address, either for one protocol
or for whichever protocol the referenced certificates belong to. Overrides are
applied before any automatic lookup and are not checked for acceptability.
"""

from collections.abc import Iterable, Iterator, Mapping

import structlog

from key_resolver.addresses import normalize_address
from key_resolver.exceptions import OverrideConflictError
from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.models.resolution import OverrideProtocol
from key_resolver.resolver.state import ResolutionState, Stage
from key_resolver.store.protocol import CertificateStore

logger = structlog.get_logger(__name__)

OverrideMapping = Mapping[OverrideProtocol, Mapping[str, Iterable[str]]]


class OverrideTable:
    """
    Override identifiers per normalized address and protocol.

    Setting the same (protocol, address) pair again replaces the earlier entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[OverrideProtocol, tuple[str, ...]]] = {}

    def set(self, protocol: OverrideProtocol, address: str, identifiers: Iterable[str]) -> None:
        """
        Set the override for an address.

        Raises:
            InvalidAddressError: If the address cannot be normalized.
        """
        normalized = normalize_address(address)
        self._entries.setdefault(normalized, {})[OverrideProtocol(protocol)] = tuple(identifiers)

    def update(self, overrides: OverrideMapping) -> None:
        for protocol, addresses in overrides.items():
            for address, identifiers in addresses.items():
                self.set(protocol, address, identifiers)

    def get(self, address: str) -> dict[OverrideProtocol, tuple[str, ...]]:
        return dict(self._entries.get(address, {}))

    def __iter__(self) -> Iterator[tuple[str, dict[OverrideProtocol, tuple[str, ...]]]]:
        for address, entries in self._entries.items():
            yield address, dict(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


def _lookup(
    store: CertificateStore,
    address: str,
    protocol: OverrideProtocol,
    identifiers: Iterable[str],
) -> list[Certificate]:
    certificates = []
    for identifier in identifiers:
        certificate = store.find_by_identifier(identifier)
        if certificate is None:
            logger.debug("Override key not found", address=address, identifier=identifier)
            continue
        if protocol.protocol is not None and certificate.protocol != protocol.protocol:
            logger.debug(
                "Ignoring override key of other protocol",
                address=address,
                fingerprint=certificate.fingerprint,
                protocol=protocol.value,
            )
            continue
        logger.debug(
            "Using override key",
            address=address,
            fingerprint=certificate.fingerprint,
            protocol=protocol.value,
        )
        certificates.append(certificate)
    return certificates


def apply_overrides(
    state: ResolutionState,
    table: OverrideTable,
    store: CertificateStore,
    forced_protocol: Protocol | None = None,
) -> ResolutionState:
    """
    Seed the encryption slots from the override table.

    Args:
        state: State at START.
        table: Overrides configured by the caller.
        store: Store used to look up the referenced certificates.
        forced_protocol: Single protocol the caller restricted resolution to.

    Returns:
        State at OVERRIDES_APPLIED.
    """
    state.require_stage(Stage.START)
    updates = {}
    for address, entries in table:
        if address not in state.encryption:
            logger.debug("Ignoring overrides for address that is not a recipient", address=address)
            continue

        slots = state.encryption[address]
        for protocol, identifiers in entries.items():
            if forced_protocol is not None and protocol.protocol not in (None, forced_protocol):
                logger.debug(
                    "Ignoring override for excluded protocol",
                    address=address,
                    protocol=protocol.value,
                )
                continue
            certificates = _lookup(store, address, protocol, identifiers)
            if not certificates:
                continue
            if protocol.protocol is None:
                slots = slots.with_common(certificates)
            else:
                slots = slots.with_protocol(protocol.protocol, certificates)
        updates[address] = slots

    return state.with_slots(updates).advance(Stage.OVERRIDES_APPLIED)


def check_override_conflicts(
    state: ResolutionState,
    forced_protocol: Protocol | None,
    allow_mixed: bool,
) -> None:
    """
    Verify that protocol-independent overrides fit the caller's policy.

    Raises:
        OverrideConflictError: If the overrides need a protocol that is forced out,
            or need both protocols while mixing is disabled.
    """
    needed: set[Protocol] = set()
    for address, slots in state.encryption.items():
        protocols = {c.protocol for c in slots.common}
        if forced_protocol is not None and protocols - {forced_protocol}:
            msg = (
                f"Overrides require {_other(forced_protocol).display_name}, "
                f"but only {forced_protocol.display_name} is allowed"
            )
            raise OverrideConflictError(msg, address=address)
        needed |= protocols

    if not allow_mixed and len(needed) > 1:
        msg = "Overrides require mixed protocols, but mixing protocols is not allowed"
        raise OverrideConflictError(msg)


def _other(protocol: Protocol) -> Protocol:
    return Protocol.CMS if protocol == Protocol.OPENPGP else Protocol.OPENPGP
