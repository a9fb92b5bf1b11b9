"""
Type synthesis: emitters and the process-scoped synthesizer cache.
"""

from concretizer.synthesis.emitter import (
    TypeEmitter,
    contract_of,
    is_synthesized,
    make_stub,
    populate_namespace,
)
from concretizer.synthesis.source import GeneratedSource, SourceEmitter
from concretizer.synthesis.synthesizer import TypeSynthesizer, make_emitter

__all__ = [
    "TypeEmitter",
    "contract_of",
    "is_synthesized",
    "make_stub",
    "populate_namespace",
    "GeneratedSource",
    "SourceEmitter",
    "TypeSynthesizer",
    "make_emitter",
]
