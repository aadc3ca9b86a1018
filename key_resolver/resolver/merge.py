"""
Cross-protocol merge.

Picks, per address, the protocol whose certificates are most trustworthy.
"""

import structlog

from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.resolver.predicates import minimum_validity
from key_resolver.resolver.state import ResolutionState, Stage

logger = structlog.get_logger(__name__)


def choose_certificates(
    address: str,
    openpgp: tuple[Certificate, ...],
    cms: tuple[Certificate, ...],
    preferred_protocol: Protocol | None = None,
) -> tuple[Certificate, ...]:
    """
    Choose between the OpenPGP and S/MIME certificates of an address.

    A list is only as trustworthy as its weakest member, so the lists are
    compared by minimum validity. Ties go to the preferred protocol, else OpenPGP.
    """
    if not openpgp or not cms:
        return openpgp or cms

    validity_openpgp = minimum_validity(openpgp, address)
    validity_cms = minimum_validity(cms, address)
    if validity_cms > validity_openpgp or (
        validity_cms == validity_openpgp and preferred_protocol == Protocol.CMS
    ):
        return cms
    return openpgp


def merge_encryption_keys(
    state: ResolutionState,
    preferred_protocol: Protocol | None = None,
    *,
    enabled: bool = True,
) -> ResolutionState:
    """
    Fill the common slot of each address from its per-protocol slots.

    Addresses whose common slot was set by an override are left alone.

    Args:
        state: State at CMS_RESOLVED.
        preferred_protocol: Tie-break preference.
        enabled: If False, only advance the stage.

    Returns:
        State at MERGED.
    """
    state.require_stage(Stage.CMS_RESOLVED)
    if not enabled:
        return state.advance(Stage.MERGED)

    updates = {}
    for address, slots in state.encryption.items():
        if slots.common:
            continue
        chosen = choose_certificates(address, slots.openpgp, slots.cms, preferred_protocol)
        if not chosen:
            continue
        logger.debug(
            "Merged encryption keys",
            address=address,
            protocol=chosen[0].protocol.value,
        )
        updates[address] = slots.with_common(chosen)
    return state.with_slots(updates).advance(Stage.MERGED)
