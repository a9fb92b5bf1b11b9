"""
Contract analysis: which members must a synthesized concrete type stub out?

The obligation set of a contract is computed in a single pass over its
hierarchy:

1. Base chain, from the most distant ancestor down to the contract itself.
   Root-first order lets a concrete override in a more specific class
   cancel an abstract declaration made further up.
2. Interface pool: the public members of every Protocol the contract
   (transitively) implements.
3. For each member declared on a chain class:
   - abstract -> joins the abstract pool,
   - concrete -> cancels the first matching abstract obligation,
   - either way, cancels every matching interface obligation (by plain
     name or by the interface-qualified name ``<module>.<Qualname>.<name>``).
4. Obligations = remaining abstract pool + remaining interface pool.

A contract that is already concrete never reaches the emitter, but
analyzing it is valid and yields an empty set.
"""

from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from concretizer.config import AnalysisConfig
from concretizer.contracts.members import (
    INFRASTRUCTURE_BASES,
    MemberSignature,
    declared_members,
    is_interface,
    parameters_match,
)
from concretizer.errors import InvalidContract


logger = logging.getLogger(__name__)


@dataclass
class ObligationSet:
    """
    Members a synthesized type must implement.

    Abstract obligations come first, interface obligations second, each in
    the order they were encountered.
    """
    contract: type
    abstract: list[MemberSignature] = field(default_factory=list)
    interface: list[MemberSignature] = field(default_factory=list)

    @property
    def members(self) -> list[MemberSignature]:
        return self.abstract + self.interface

    def names(self) -> list[str]:
        return [m.name for m in self.members]

    def find(self, name: str) -> list[MemberSignature]:
        return [m for m in self.members if m.name == name]

    def __iter__(self) -> Iterator[MemberSignature]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.abstract) + len(self.interface)


def resolve_contract(contract: Any) -> type:
    """
    Validate a contract reference and return the class it names.

    A parameterized alias (``Repository[int]``) resolves to its origin class.
    """
    if contract is None:
        raise InvalidContract(contract)
    if isinstance(contract, type):
        return contract
    origin = typing.get_origin(contract)
    if isinstance(origin, type):
        return origin
    raise InvalidContract(contract, f"expected a class, got {type(contract).__name__}")


def is_concrete(cls: type) -> bool:
    """
    Neither abstract nor an interface.

    Protocol members inherited without an implementation are not seen here;
    ``TypeSynthesizer.is_concrete`` also requires an empty obligation set.
    """
    return not inspect.isabstract(cls) and not is_interface(cls)


def base_chain(contract: type) -> list[type]:
    """Classes whose declarations shape the contract, root first."""
    return [
        cls for cls in reversed(contract.__mro__)
        if cls is contract or (cls not in INFRASTRUCTURE_BASES and not is_interface(cls))
    ]


def interface_set(contract: type) -> list[type]:
    """Every Protocol the contract implements, most specific first."""
    return [cls for cls in contract.__mro__[1:] if is_interface(cls)]


class ContractAnalyzer:
    """Computes the obligation set of a contract."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def analyze(self, contract: Any) -> ObligationSet:
        contract = resolve_contract(contract)

        interface_pool: list[MemberSignature] = []
        for interface in interface_set(contract):
            interface_pool.extend(
                declared_members(interface, public_only=True, treat_as_abstract=True)
            )

        abstract_pool: list[MemberSignature] = []
        for owner in base_chain(contract):
            # Everything a Protocol declares is abstract
            for member in declared_members(owner, treat_as_abstract=is_interface(owner)):
                if member.is_abstract:
                    self._add_abstract(abstract_pool, member)
                else:
                    self._cancel_abstract(abstract_pool, member)
                interface_pool = self._cancel_interface(interface_pool, member)

        obligations = ObligationSet(
            contract=contract,
            abstract=abstract_pool,
            interface=self._distinct(interface_pool),
        )
        logger.debug(
            "Contract %s: %d abstract, %d interface obligation(s)",
            contract.__qualname__, len(obligations.abstract), len(obligations.interface),
        )
        return obligations

    def matches(self, obligation: MemberSignature, member: MemberSignature) -> bool:
        if obligation.name != member.name:
            return False
        return self._parameters_match(obligation, member)

    def _parameters_match(self, first: MemberSignature, second: MemberSignature) -> bool:
        return not self.config.match_parameter_types or parameters_match(first, second)

    def _add_abstract(self, pool: list[MemberSignature], member: MemberSignature) -> None:
        # A re-declaration supersedes the inherited one in place
        for index, existing in enumerate(pool):
            if self.matches(existing, member):
                pool[index] = member
                return
        pool.append(member)

    def _cancel_abstract(self, pool: list[MemberSignature], member: MemberSignature) -> None:
        for index, existing in enumerate(pool):
            if self.matches(existing, member):
                del pool[index]
                return

    def _cancel_interface(
        self,
        pool: list[MemberSignature],
        member: MemberSignature,
    ) -> list[MemberSignature]:
        # Remove every match, not just the first: the same member may be
        # declared by several interfaces.
        return [
            obligation for obligation in pool
            if not (
                member.name in (obligation.name, obligation.qualified_name)
                and self._parameters_match(obligation, member)
            )
        ]

    def _distinct(self, pool: list[MemberSignature]) -> list[MemberSignature]:
        distinct: list[MemberSignature] = []
        for obligation in pool:
            if not any(self.matches(seen, obligation) for seen in distinct):
                distinct.append(obligation)
        return distinct
