"""
Type synthesizer: the one place that turns contracts into instances.

A ``TypeSynthesizer`` owns the cache of synthesized types for the process.
Build one at startup and hand it to every component that needs concrete
instances of possibly-abstract declared types (deserializers, factories):

    synthesizer = TypeSynthesizer(ConcretizerConfig.load(project_root))
    shape = synthesizer.instantiate(Shape)

Cache entries are never evicted.  A single lock serializes the
lookup / synthesize / insert sequence so each contract gets exactly one
synthesized type; instances are constructed outside the lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Union

from concretizer.config import ConcretizerConfig, SynthesisConfig
from concretizer.contracts.analyzer import ContractAnalyzer, is_concrete, resolve_contract
from concretizer.errors import SynthesisUnavailable
from concretizer.synthesis.emitter import TypeEmitter
from concretizer.synthesis.source import SourceEmitter


logger = logging.getLogger(__name__)

Emitter = Union[TypeEmitter, SourceEmitter]

EMITTERS = {
    TypeEmitter.strategy: TypeEmitter,
    SourceEmitter.strategy: SourceEmitter,
}


def make_emitter(config: SynthesisConfig) -> Emitter:
    return EMITTERS[config.strategy](config)


class TypeSynthesizer:
    """Process-scoped cache of synthesized concrete types."""

    def __init__(
        self,
        config: Optional[ConcretizerConfig] = None,
        analyzer: Optional[ContractAnalyzer] = None,
        emitter: Optional[Emitter] = None,
    ):
        self.config = config or ConcretizerConfig()
        self.analyzer = analyzer or ContractAnalyzer(self.config.analysis)
        self.emitter = emitter or make_emitter(self.config.synthesis)
        self._types: dict[type, type] = {}
        self._lock = threading.Lock()

    def instantiate(self, contract: Any, *args, **kwargs) -> Any:
        """
        Create an instance of a concrete type satisfying *contract*.

        Concrete contracts are instantiated directly.  Abstract classes and
        Protocols are instantiated through their synthesized type, whose
        stubbed members raise ``NotImplementedInvocation`` when used.
        Arguments are passed to the constructor unchanged.

        Raises:
            InvalidContract: *contract* is None or not a class
            SynthesisUnavailable: type synthesis is disabled
        """
        concrete = self.resolve(contract)
        return concrete(*args, **kwargs)

    def resolve(self, contract: Any) -> type:
        """The concrete type used for *contract*, synthesizing it on first use."""
        contract = resolve_contract(contract)
        if self.is_concrete(contract):
            return contract

        with self._lock:
            concrete = self._types.get(contract)
            if concrete is None:
                concrete = self._synthesize(contract)
                self._types[contract] = concrete
            else:
                logger.debug("Cache hit for %s", contract.__qualname__)
        return concrete

    def lookup(self, contract: Any) -> Optional[type]:
        """The cached synthesized type for *contract*, without synthesizing."""
        contract = resolve_contract(contract)
        with self._lock:
            return self._types.get(contract)

    def synthesized_types(self) -> dict[type, type]:
        """Snapshot of the cache: contract -> synthesized type."""
        with self._lock:
            return dict(self._types)

    def __contains__(self, contract: Any) -> bool:
        return self.lookup(contract) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._types)

    def is_concrete(self, contract: type) -> bool:
        """
        True iff *contract* can be used as-is.

        A class that is not abstract may still inherit Protocol members it
        never implements; those leave obligations behind and force synthesis.
        """
        if not is_concrete(contract):
            return False
        return len(self.analyzer.analyze(contract)) == 0

    def _synthesize(self, contract: type) -> type:
        if not self.config.synthesis.enabled:
            raise SynthesisUnavailable(
                f"Cannot synthesize a concrete type for {contract.__qualname__}: "
                "type synthesis is disabled in this process"
            )
        obligations = self.analyzer.analyze(contract)
        concrete = self.emitter.emit(contract, obligations)
        logger.debug(
            "Synthesized %s for %s (%s): %s",
            concrete.__qualname__, contract.__qualname__, self.emitter.strategy,
            ", ".join(obligations.names()) or "no stubs",
        )
        return concrete
