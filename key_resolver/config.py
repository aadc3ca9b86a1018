"""
Key resolver configuration.
"""

from dataclasses import dataclass

from key_resolver.models.certificate import Protocol, Validity

_NO_COMPLIANCE = ("", "gnupg")


@dataclass(frozen=True, kw_only=True)
class ResolverConfig:
    """
    Attributes:
        encrypt: Whether encryption certificates must be resolved.
        sign: Whether signing certificates must be resolved.
        protocol: Restrict resolution to a single protocol, or None for both.
        allow_mixed: Whether different recipients may use different protocols.
        preferred_protocol: Protocol to favour when both are equally good.
        minimum_validity: Lowest user ID validity accepted for automatic encryption keys.
        compliance: Compliance mode token (e.g. "de-vs"), or None.
    """

    encrypt: bool = True
    sign: bool = True
    protocol: Protocol | None = None
    allow_mixed: bool = True
    preferred_protocol: Protocol | None = None
    minimum_validity: Validity = Validity.MARGINAL
    compliance: str | None = None

    def __post_init__(self) -> None:
        if self.protocol is not None and not isinstance(self.protocol, Protocol):
            msg = "protocol must be a Protocol or None"
            raise ValueError(msg)
        if self.preferred_protocol is not None and not isinstance(
            self.preferred_protocol, Protocol
        ):
            msg = "preferred_protocol must be a Protocol or None"
            raise ValueError(msg)
        if not isinstance(self.minimum_validity, Validity):
            msg = "minimum_validity must be a Validity"
            raise ValueError(msg)
        if self.compliance is not None and not isinstance(self.compliance, str):
            msg = "compliance must be a string or None"
            raise ValueError(msg)

    @property
    def compliance_mode(self) -> str | None:
        """The active compliance mode, None if no compliance is enforced."""
        if self.compliance is None or self.compliance.strip().lower() in _NO_COMPLIANCE:
            return None
        return self.compliance.strip().lower()

    @property
    def mixing_possible(self) -> bool:
        """Whether recipients may be split across protocols."""
        return self.allow_mixed and self.protocol is None
