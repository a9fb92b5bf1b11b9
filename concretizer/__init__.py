"""
concretizer: concrete types for abstract contracts.

Given an abstract class or a Protocol, synthesizes a concrete subclass in
which every unimplemented member is a stub raising
``NotImplementedInvocation``, caches it per contract and instantiates it.
"""

from concretizer.config import ConcretizerConfig
from concretizer.contracts import ContractAnalyzer, MemberSignature, ObligationSet
from concretizer.errors import (
    ConcretizerError,
    InvalidContract,
    NotImplementedInvocation,
    SynthesisUnavailable,
)
from concretizer.synthesis import TypeSynthesizer, is_synthesized

__version__ = "0.1.0"

__all__ = [
    "ConcretizerConfig",
    "ContractAnalyzer",
    "MemberSignature",
    "ObligationSet",
    "ConcretizerError",
    "InvalidContract",
    "NotImplementedInvocation",
    "SynthesisUnavailable",
    "TypeSynthesizer",
    "is_synthesized",
]
