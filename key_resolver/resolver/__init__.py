"""
Key resolution pipeline.

This module provides:
- Certificate predicates (acceptability, validity)
- Override tables
- Per-protocol resolution and cross-protocol merge
- The decision engine and the KeyResolver facade
"""

from key_resolver.resolver.core import KeyResolver
from key_resolver.resolver.decision import DecisionEngine
from key_resolver.resolver.merge import merge_encryption_keys
from key_resolver.resolver.overrides import OverrideTable, apply_overrides
from key_resolver.resolver.predicates import AcceptancePolicy, certificate_validity
from key_resolver.resolver.protocol_resolver import ProtocolResolver
from key_resolver.resolver.state import ResolutionState, Stage

__all__ = [
    "KeyResolver",
    "AcceptancePolicy",
    "certificate_validity",
    "OverrideTable",
    "apply_overrides",
    "ProtocolResolver",
    "merge_encryption_keys",
    "DecisionEngine",
    "ResolutionState",
    "Stage",
]
