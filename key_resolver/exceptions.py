"""
Key resolver exception hierarchy.

All exceptions inherit from KeyResolverError for easy catching.
"""

from typing import Any


class KeyResolverError(Exception):
    """Base exception for all key_resolver errors."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class InvalidAddressError(KeyResolverError):
    """A sender, recipient or override address could not be normalized."""

    def __init__(self, message: str, *, address: str) -> None:
        super().__init__(message, address=address)
        self.address = address


class OverrideConflictError(KeyResolverError):
    """Override keys require a protocol combination the policy forbids."""

    def __init__(self, message: str, *, address: str | None = None) -> None:
        super().__init__(message, address=address)
        self.address = address


class ResolverStateError(KeyResolverError):
    """A resolution stage was run out of order."""


class CertificateLoadError(KeyResolverError):
    """Failed to build a certificate from its encoded form."""
