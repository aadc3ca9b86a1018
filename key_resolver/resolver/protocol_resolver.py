"""
Per-protocol resolution.

Finds the signing certificates of the sender and the encryption certificates of
every recipient that is still unresolved, within one protocol.
"""

import structlog

from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.resolver.predicates import AcceptancePolicy
from key_resolver.resolver.state import RESOLVED_STAGE, ResolutionState
from key_resolver.store.protocol import CertificateStore

logger = structlog.get_logger(__name__)


class ProtocolResolver:
    """
    Resolves certificates for a single protocol.

    Example:
        resolver = ProtocolResolver(store, policy, sign=True)
        state = resolver.resolve(state, Protocol.OPENPGP)
    """

    def __init__(self, store: CertificateStore, policy: AcceptancePolicy, *, sign: bool) -> None:
        """
        Args:
            store: Store to search for candidates.
            policy: Acceptability rules for automatically selected certificates.
            sign: Whether signing certificates are needed.
        """
        self._store = store
        self._policy = policy
        self._sign = sign

    def resolve(self, state: ResolutionState, protocol: Protocol) -> ResolutionState:
        """
        Resolve signing and encryption certificates for a protocol.

        Args:
            state: State whose previous stage precedes this protocol's stage.
            protocol: Protocol to resolve.

        Returns:
            State advanced to this protocol's resolved stage.
        """
        state = self.resolve_signing(state, protocol)
        state = self.resolve_encryption(state, protocol)
        return state.advance(RESOLVED_STAGE[protocol])

    def skip(self, state: ResolutionState, protocol: Protocol) -> ResolutionState:
        """Advance past a protocol the caller excluded."""
        logger.debug("Skipping excluded protocol", protocol=protocol.value)
        return state.advance(RESOLVED_STAGE[protocol])

    def resolve_signing(self, state: ResolutionState, protocol: Protocol) -> ResolutionState:
        if not self._sign or state.sender is None:
            return state
        if state.has_signing(protocol):
            # Explicitly set by the caller
            return state

        candidates = self._store.find_best_candidates(
            state.sender, protocol, require_secret=True, for_encryption=False
        )
        for candidate in candidates:
            if not self._policy.is_acceptable_signing_certificate(candidate):
                logger.debug(
                    "Unacceptable signing key",
                    fingerprint=candidate.fingerprint,
                    sender=state.sender,
                )
                return state

        if not candidates:
            logger.debug("No signing key found", sender=state.sender, protocol=protocol.value)
            return state
        return state.with_signing(protocol, candidates)

    def resolve_encryption(self, state: ResolutionState, protocol: Protocol) -> ResolutionState:
        updates = {}
        for address, slots in state.encryption.items():
            if slots.common:
                # A protocol-independent override replaces anything set for one protocol
                if all(c.protocol == protocol for c in slots.common):
                    updates[address] = slots.with_protocol(protocol, slots.common)
                else:
                    logger.debug(
                        "Common override unusable for protocol",
                        address=address,
                        protocol=protocol.value,
                    )
                    updates[address] = slots.with_protocol(protocol, ())
                continue
            if slots.for_protocol(protocol):
                # Already resolved by an override
                continue
            certificates = self.resolve_recipient(address, protocol)
            if certificates:
                updates[address] = slots.with_protocol(protocol, certificates)
        return state.with_slots(updates)

    def resolve_recipient(self, address: str, protocol: Protocol) -> list[Certificate]:
        """
        Find acceptable encryption certificates for one address.

        A group is used only if every member is acceptable; it is never
        returned partially.

        Returns:
            The certificates, or an empty list if the address stays unresolved.
        """
        candidates = self._store.find_best_candidates(
            address, protocol, require_secret=False, for_encryption=True
        )
        if not candidates:
            logger.debug("No key found", address=address, protocol=protocol.value)
            return []

        if len(candidates) == 1:
            if not self._policy.is_acceptable_encryption_certificate(candidates[0], address):
                logger.debug(
                    "Key has not enough validity",
                    address=address,
                    fingerprint=candidates[0].fingerprint,
                )
                return []
        elif not all(self._policy.is_acceptable_encryption_certificate(c) for c in candidates):
            logger.debug(
                "Group contains an unacceptable key",
                address=address,
                protocol=protocol.value,
                size=len(candidates),
            )
            return []

        for certificate in candidates:
            logger.debug(
                "Resolved encryption key",
                address=address,
                fingerprint=certificate.fingerprint,
            )
        return list(candidates)
