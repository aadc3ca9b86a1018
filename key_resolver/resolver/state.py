"""
Working resolution state.

The state is an immutable value threaded through the resolution stages. Each
stage returns a new state and advances the stage marker; stages never run twice
and never move backwards.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Self

from key_resolver.exceptions import ResolverStateError
from key_resolver.models.certificate import Certificate, Protocol


class Stage(IntEnum):
    """Resolution stages in the order they run."""

    START = 0
    OVERRIDES_APPLIED = 1
    OPENPGP_RESOLVED = 2
    CMS_RESOLVED = 3
    MERGED = 4
    FINALIZED = 5
    NEEDS_DISAMBIGUATION = 6
    FAILED = 7

    @property
    def is_terminal(self) -> bool:
        return self >= Stage.FINALIZED


RESOLVED_STAGE = {
    Protocol.OPENPGP: Stage.OPENPGP_RESOLVED,
    Protocol.CMS: Stage.CMS_RESOLVED,
}


@dataclass(frozen=True)
class AddressSlots:
    """
    Encryption certificates found for one address.

    Attributes:
        openpgp: OpenPGP certificates.
        cms: S/MIME certificates.
        common: Protocol-independent choice, set by an override or by the merge.
    """

    openpgp: tuple[Certificate, ...] = ()
    cms: tuple[Certificate, ...] = ()
    common: tuple[Certificate, ...] = ()

    def for_protocol(self, protocol: Protocol) -> tuple[Certificate, ...]:
        return self.openpgp if protocol == Protocol.OPENPGP else self.cms

    def with_protocol(self, protocol: Protocol, certificates: Iterable[Certificate]) -> Self:
        if protocol == Protocol.OPENPGP:
            return replace(self, openpgp=tuple(certificates))
        return replace(self, cms=tuple(certificates))

    def with_common(self, certificates: Iterable[Certificate]) -> Self:
        return replace(self, common=tuple(certificates))


@dataclass(frozen=True, kw_only=True)
class ResolutionState:
    """
    Snapshot of a resolution in progress.

    Attributes:
        stage: Last completed stage.
        sender: Normalized sender used for signing, or None.
        signing: Signing certificates per protocol.
        encryption: Encryption slots per recipient address, in recipient order.
    """

    stage: Stage = Stage.START
    sender: str | None = None
    signing: Mapping[Protocol, tuple[Certificate, ...]] = field(default_factory=dict)
    encryption: Mapping[str, AddressSlots] = field(default_factory=dict)

    @classmethod
    def initial(
        cls,
        sender: str | None,
        recipients: Iterable[str],
        signing: Mapping[Protocol, Iterable[Certificate]] | None = None,
    ) -> Self:
        """Build the START state with empty slots for every recipient."""
        return cls(
            sender=sender,
            signing={p: tuple(certs) for p, certs in (signing or {}).items() if certs},
            encryption={address: AddressSlots() for address in recipients},
        )

    @property
    def recipients(self) -> tuple[str, ...]:
        return tuple(self.encryption)

    def advance(self, stage: Stage) -> Self:
        """
        Move to a later stage.

        Raises:
            ResolverStateError: If the stage is not after the current one, or the
                current stage is terminal.
        """
        if self.stage.is_terminal or stage <= self.stage:
            msg = "Resolution stages must run forward"
            raise ResolverStateError(msg, current=self.stage.name, requested=stage.name)
        return replace(self, stage=stage)

    def require_stage(self, expected: Stage) -> None:
        if self.stage != expected:
            msg = "Resolution stage run out of order"
            raise ResolverStateError(msg, current=self.stage.name, expected=expected.name)

    def with_signing(self, protocol: Protocol, certificates: Iterable[Certificate]) -> Self:
        signing = dict(self.signing)
        signing[protocol] = tuple(certificates)
        return replace(self, signing=signing)

    def with_slots(self, updates: Mapping[str, AddressSlots]) -> Self:
        if not updates:
            return self
        encryption = dict(self.encryption)
        encryption.update(updates)
        return replace(self, encryption=encryption)

    def has_signing(self, protocol: Protocol) -> bool:
        return bool(self.signing.get(protocol))

    def unresolved(self, protocol: Protocol) -> tuple[str, ...]:
        """Addresses without certificates for a protocol."""
        return tuple(
            address for address, slots in self.encryption.items()
            if not slots.for_protocol(protocol)
        )

    def is_complete(self, protocol: Protocol, *, sign: bool) -> bool:
        """Whether a protocol alone covers every recipient and, if needed, signing."""
        return not self.unresolved(protocol) and (not sign or self.has_signing(protocol))

    def encryption_for(self, protocol: Protocol) -> dict[str, tuple[Certificate, ...]]:
        return {address: slots.for_protocol(protocol) for address, slots in self.encryption.items()}

    def common_encryption(self) -> dict[str, tuple[Certificate, ...]]:
        return {address: slots.common for address, slots in self.encryption.items()}
