"""
Decision engine.

Turns the merged resolution state into a result: a single-protocol solution,
a mixed solution, or a partial proposal that the caller has to complete.
"""

import structlog

from key_resolver.config import ResolverConfig
from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.models.resolution import (
    ResolutionResult,
    ResolutionStatus,
    Solution,
    SolutionProtocol,
)
from key_resolver.resolver.state import ResolutionState, Stage

logger = structlog.get_logger(__name__)

_PROTOCOLS = (Protocol.OPENPGP, Protocol.CMS)


def _other(protocol: Protocol) -> Protocol:
    return Protocol.CMS if protocol == Protocol.OPENPGP else Protocol.OPENPGP


def single_protocol_solution(state: ResolutionState, protocol: Protocol) -> Solution:
    """Solution made of one protocol's signing and encryption certificates."""
    return Solution(
        protocol=SolutionProtocol.for_protocol(protocol),
        signing_certificates=state.signing.get(protocol, ()),
        encryption_certificates=state.encryption_for(protocol),
    )


def mixed_solution(state: ResolutionState) -> Solution:
    """Solution made of the merged encryption certificates and all signing certificates."""
    signing: tuple[Certificate, ...] = ()
    for protocol in _PROTOCOLS:
        signing += state.signing.get(protocol, ())
    return Solution(
        protocol=SolutionProtocol.MIXED,
        signing_certificates=signing,
        encryption_certificates=state.common_encryption(),
    )


def _proposal(state: ResolutionState) -> Solution:
    """Best partial solution, tagged with the protocols it actually uses."""
    encryption = state.common_encryption()
    used = {c.protocol for certs in encryption.values() for c in certs}
    if len(used) == 1:
        (protocol,) = used
        return Solution(
            protocol=SolutionProtocol.for_protocol(protocol),
            signing_certificates=state.signing.get(protocol, ()),
            encryption_certificates=encryption,
        )
    return mixed_solution(state)


class DecisionEngine:
    """
    Decides the outcome of a resolution from the merged state.

    Example:
        engine = DecisionEngine(config)
        state, result = engine.decide(merged_state)
    """

    def __init__(self, config: ResolverConfig) -> None:
        self._config = config

    def decide(self, state: ResolutionState) -> tuple[ResolutionState, ResolutionResult]:
        """
        Decide the outcome.

        Args:
            state: State at MERGED.

        Returns:
            The terminal state and the result to report.
        """
        state.require_stage(Stage.MERGED)
        config = self._config
        sign = config.sign

        if config.protocol is not None:
            complete = state.is_complete(config.protocol, sign=sign)
            return self._finish(
                state,
                resolved=complete,
                solution=single_protocol_solution(state, config.protocol),
            )

        openpgp_complete = state.is_complete(Protocol.OPENPGP, sign=sign)
        cms_complete = state.is_complete(Protocol.CMS, sign=sign)

        if openpgp_complete or cms_complete:
            if cms_complete and (
                not openpgp_complete or config.preferred_protocol == Protocol.CMS
            ):
                primary = Protocol.CMS
            else:
                primary = Protocol.OPENPGP
            alternative = None
            if openpgp_complete and cms_complete:
                alternative = single_protocol_solution(state, _other(primary))
            return self._finish(
                state,
                resolved=True,
                solution=single_protocol_solution(state, primary),
                alternative=alternative,
            )

        if not config.allow_mixed:
            preferred = config.preferred_protocol or Protocol.OPENPGP
            return self._finish(
                state,
                resolved=False,
                solution=single_protocol_solution(state, preferred),
            )

        # Mixed mode: every address needs a merged choice and, when signing,
        # both protocols need a signing key.
        gaps = [address for address, slots in state.encryption.items() if not slots.common]
        needs_user = bool(gaps) or (
            sign and not all(state.has_signing(protocol) for protocol in _PROTOCOLS)
        )
        if needs_user:
            return self._finish(state, resolved=False, solution=_proposal(state))
        return self._finish(state, resolved=True, solution=mixed_solution(state))

    def _finish(
        self,
        state: ResolutionState,
        *,
        resolved: bool,
        solution: Solution,
        alternative: Solution | None = None,
    ) -> tuple[ResolutionState, ResolutionResult]:
        if resolved:
            status, stage = ResolutionStatus.ALL_RESOLVED, Stage.FINALIZED
        else:
            status, stage = ResolutionStatus.NEEDS_DISAMBIGUATION, Stage.NEEDS_DISAMBIGUATION

        result = ResolutionResult(
            status=status,
            solution=solution,
            alternative=alternative,
            **report(state),
        )
        logger.info(
            "Key resolution finished",
            status=status.value,
            protocol=solution.protocol.value,
            alternative=alternative.protocol.value if alternative else None,
        )
        return state.advance(stage), result


def report(state: ResolutionState) -> dict:
    """Per-protocol view of the state: unresolved addresses and found certificates."""
    return {
        "unresolved": {protocol: state.unresolved(protocol) for protocol in _PROTOCOLS},
        "signing_certificates": {
            protocol: certs for protocol, certs in state.signing.items() if certs
        },
        "encryption_certificates": {
            protocol: {
                address: certs
                for address, certs in state.encryption_for(protocol).items()
                if certs
            }
            for protocol in _PROTOCOLS
        },
    }
