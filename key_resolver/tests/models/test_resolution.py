from key_resolver.models.certificate import Certificate, Protocol
from key_resolver.models.resolution import (
    OverrideProtocol,
    ResolutionResult,
    ResolutionStatus,
    Solution,
    SolutionProtocol,
)


def test_override_protocol_maps_to_concrete_protocol() -> None:
    assert OverrideProtocol.OPENPGP.protocol is Protocol.OPENPGP
    assert OverrideProtocol.CMS.protocol is Protocol.CMS
    assert OverrideProtocol.FROM_CERTIFICATE.protocol is None
    assert OverrideProtocol.for_protocol(Protocol.CMS) is OverrideProtocol.CMS


def test_solution_protocol_maps_to_concrete_protocol() -> None:
    assert SolutionProtocol.OPENPGP.protocol is Protocol.OPENPGP
    assert SolutionProtocol.MIXED.protocol is None
    assert SolutionProtocol.for_protocol(Protocol.OPENPGP) is SolutionProtocol.OPENPGP


def test_solution_reports_unresolved_recipients() -> None:
    certificate = Certificate(protocol=Protocol.OPENPGP, fingerprint="AB" * 20)
    solution = Solution(
        protocol=SolutionProtocol.OPENPGP,
        encryption_certificates={"bob@example.net": (certificate,), "carol@example.net": ()},
    )

    assert solution.unresolved_recipients == ("carol@example.net",)
    assert not solution.is_complete


def test_empty_solution_is_complete() -> None:
    assert Solution(protocol=SolutionProtocol.MIXED).is_complete


def test_result_status_helpers() -> None:
    resolved = ResolutionResult(status=ResolutionStatus.ALL_RESOLVED)
    pending = ResolutionResult(status=ResolutionStatus.NEEDS_DISAMBIGUATION)
    failed = ResolutionResult(status=ResolutionStatus.ERROR, error="conflict")

    assert resolved.is_resolved and not resolved.needs_disambiguation
    assert pending.needs_disambiguation and not pending.is_error
    assert failed.is_error and failed.error == "conflict"


def test_result_unresolved_recipients_defaults_to_empty() -> None:
    result = ResolutionResult(
        status=ResolutionStatus.NEEDS_DISAMBIGUATION,
        unresolved={Protocol.OPENPGP: ("bob@example.net",)},
    )

    assert result.unresolved_recipients(Protocol.OPENPGP) == ("bob@example.net",)
    assert result.unresolved_recipients(Protocol.CMS) == ()
