"""
Key resolver facade.

This is the main entry point for callers. It collects the sender, recipients,
manual choices and policy, then runs the resolution pipeline:
overrides → OpenPGP → S/MIME → merge → decision.
"""

from collections.abc import Iterable

import structlog

from key_resolver.addresses import normalize_address
from key_resolver.config import ResolverConfig
from key_resolver.exceptions import OverrideConflictError
from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.models.resolution import (
    ResolutionResult,
    ResolutionStatus,
    Solution,
    SolutionProtocol,
)
from key_resolver.resolver.decision import DecisionEngine, report
from key_resolver.resolver.merge import merge_encryption_keys
from key_resolver.resolver.overrides import (
    OverrideMapping,
    OverrideTable,
    apply_overrides,
    check_override_conflicts,
)
from key_resolver.resolver.predicates import (
    AcceptancePolicy,
    ComplianceCheck,
    default_compliance_check,
)
from key_resolver.resolver.protocol_resolver import ProtocolResolver
from key_resolver.resolver.state import ResolutionState, Stage
from key_resolver.store.protocol import CertificateStore

logger = structlog.get_logger(__name__)


class KeyResolver:
    """
    Resolves signing and encryption certificates for an outgoing message.

    Example:
        ```python
        resolver = KeyResolver(store, ResolverConfig(allow_mixed=False))
        resolver.set_sender("Alice <alice@example.net>")
        resolver.set_recipients(["bob@example.net"])

        result = resolver.resolve()
        if result.is_resolved:
            sign_with = result.solution.signing_certificates
        elif result.needs_disambiguation:
            ask_user(result.unresolved_recipients(Protocol.OPENPGP))
        ```

    Resolving does not modify the resolver, so calling resolve() twice with an
    unchanged store gives equal results.
    """

    def __init__(
        self,
        store: CertificateStore,
        config: ResolverConfig | None = None,
        *,
        compliance_check: ComplianceCheck | None = None,
    ) -> None:
        """
        Args:
            store: Certificate store to search.
            config: Resolution policy. Uses defaults if not provided.
            compliance_check: Predicate deciding whether a certificate satisfies the
                configured compliance mode. Defaults to Certificate.compliance_modes.
        """
        self._store = store
        self._config = config or ResolverConfig()
        self._policy = AcceptancePolicy(
            minimum_validity=self._config.minimum_validity,
            compliance=self._config.compliance_mode,
            compliance_check=compliance_check or default_compliance_check,
        )
        self._sender: str | None = None
        self._recipients: list[str] = []
        self._signing_identifiers: list[str] = []
        self._overrides = OverrideTable()

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def normalized_sender(self) -> str | None:
        """The sender used for signing, None if not signing or not set."""
        return self._sender

    @property
    def recipients(self) -> tuple[str, ...]:
        """Normalized encryption recipients, including the sender when encrypting."""
        return tuple(self._recipients)

    def set_sender(self, address: str) -> None:
        """
        Set the sender.

        The sender signs the message and, when encrypting, is also an
        encryption recipient.

        Raises:
            InvalidAddressError: If the address cannot be normalized.
        """
        normalized = normalize_address(address)
        if self._config.sign:
            self._sender = normalized
        self._add_recipients([normalized])

    def set_recipients(self, addresses: Iterable[str]) -> None:
        """
        Add encryption recipients.

        Raises:
            InvalidAddressError: If an address cannot be normalized.
        """
        self._add_recipients([normalize_address(address) for address in addresses])

    def set_signing_keys(self, identifiers: Iterable[str]) -> None:
        """
        Use these certificates for signing instead of looking them up.

        Args:
            identifiers: Fingerprints or key IDs. Each certificate is used for
                its own protocol; unknown identifiers are ignored.
        """
        if self._config.sign:
            self._signing_identifiers.extend(identifiers)

    def set_override_keys(self, overrides: OverrideMapping) -> None:
        """
        Force the encryption certificates of addresses.

        Args:
            overrides: Identifiers per protocol and address. FROM_CERTIFICATE
                entries take precedence over protocol-specific ones.

        Raises:
            InvalidAddressError: If an address cannot be normalized.
        """
        self._overrides.update(overrides)

    def resolve(self) -> ResolutionResult:
        """
        Resolve certificates.

        Returns:
            The result. Its status tells whether the solution can be used as-is,
            the caller has to complete it, or the configured overrides contradict
            the policy.
        """
        config = self._config
        logger.debug(
            "Starting key resolution",
            sender=self._sender,
            recipients=len(self._recipients),
            protocol=config.protocol.value if config.protocol else None,
        )
        if not config.sign and not config.encrypt:
            # Nothing to do
            protocol = config.protocol or config.preferred_protocol or Protocol.OPENPGP
            return ResolutionResult(
                status=ResolutionStatus.ALL_RESOLVED,
                solution=Solution(protocol=SolutionProtocol.for_protocol(protocol)),
            )

        state = ResolutionState.initial(
            self._sender, self._recipients, self._lookup_signing_keys()
        )
        state = apply_overrides(state, self._overrides, self._store, config.protocol)
        try:
            check_override_conflicts(state, config.protocol, config.allow_mixed)
        except OverrideConflictError as e:
            state = state.advance(Stage.FAILED)
            logger.info("Key resolution failed", error=str(e), stage=state.stage.name)
            return ResolutionResult(status=ResolutionStatus.ERROR, error=str(e), **report(state))

        protocol_resolver = ProtocolResolver(self._store, self._policy, sign=config.sign)
        for protocol in (Protocol.OPENPGP, Protocol.CMS):
            if config.protocol in (None, protocol):
                state = protocol_resolver.resolve(state, protocol)
            else:
                state = protocol_resolver.skip(state, protocol)

        state = merge_encryption_keys(
            state, config.preferred_protocol, enabled=config.mixing_possible
        )
        state, result = DecisionEngine(config).decide(state)
        logger.debug("Key resolution reached stage", stage=state.stage.name)
        return result

    def _add_recipients(self, addresses: Iterable[str]) -> None:
        if not self._config.encrypt:
            return
        for address in addresses:
            if address not in self._recipients:
                self._recipients.append(address)

    def _lookup_signing_keys(self) -> dict[Protocol, list[Certificate]]:
        signing: dict[Protocol, list[Certificate]] = {}
        for identifier in self._signing_identifiers:
            certificate = self._store.find_by_identifier(identifier)
            if certificate is None:
                logger.debug("Signing key not found", identifier=identifier)
                continue
            signing.setdefault(certificate.protocol, []).append(certificate)
        return signing
