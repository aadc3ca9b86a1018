"""
Domain models for key resolution.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from key_resolver.models.certificate import Certificate, Protocol, UserId, Validity
from key_resolver.models.resolution import (
    OverrideProtocol,
    ResolutionResult,
    ResolutionStatus,
    Solution,
    SolutionProtocol,
)

__all__ = [
    # Certificates
    "Protocol",
    "Validity",
    "UserId",
    "Certificate",
    # Resolution
    "OverrideProtocol",
    "SolutionProtocol",
    "ResolutionStatus",
    "Solution",
    "ResolutionResult",
]
