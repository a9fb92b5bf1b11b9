"""
Contract analysis.

Turns an abstract class or Protocol into the de-duplicated list of members
a concrete implementation still has to provide.
"""

from concretizer.contracts.analyzer import (
    ContractAnalyzer,
    ObligationSet,
    base_chain,
    interface_set,
    is_concrete,
    resolve_contract,
)
from concretizer.contracts.members import (
    CallingConvention,
    MemberSignature,
    declared_members,
    is_interface,
    member_signature,
    normalize_annotation,
    parameters_match,
)

__all__ = [
    "ContractAnalyzer",
    "ObligationSet",
    "base_chain",
    "interface_set",
    "is_concrete",
    "resolve_contract",
    "CallingConvention",
    "MemberSignature",
    "declared_members",
    "is_interface",
    "member_signature",
    "normalize_annotation",
    "parameters_match",
]
