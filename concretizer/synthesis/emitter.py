"""
Runtime emission of synthesized types.

``TypeEmitter`` creates a subclass of the contract with ``types.new_class``
whose namespace holds one stub per obligation.  A stub keeps the name,
signature, annotations and docstring of the member it stands in for, and
raises ``NotImplementedInvocation`` whenever it is used.
"""

from __future__ import annotations

import inspect
import logging
import types
from typing import Any, Callable, Iterable, Optional

from concretizer.config import SynthesisConfig
from concretizer.contracts.members import CallingConvention, MemberSignature
from concretizer.errors import NotImplementedInvocation


logger = logging.getLogger(__name__)

# Class attribute pointing back from a synthesized type to its contract
CONTRACT_ATTRIBUTE = "__concretizer_contract__"


def is_synthesized(cls: Any) -> bool:
    return isinstance(cls, type) and CONTRACT_ATTRIBUTE in vars(cls)


def contract_of(cls: type) -> Optional[type]:
    """The contract *cls* was synthesized for, or None."""
    return vars(cls).get(CONTRACT_ATTRIBUTE) if isinstance(cls, type) else None


def synthesized_name(contract: type, suffix: str) -> str:
    return f"{contract.__name__}{suffix}"


def make_stub(type_name: str, obligation: MemberSignature) -> Any:
    """A member that raises ``NotImplementedInvocation`` when used."""
    if obligation.convention is CallingConvention.PROPERTY:
        return _property_stub(type_name, obligation)
    return _method_stub(type_name, obligation)


def _method_stub(type_name: str, obligation: MemberSignature) -> Callable:
    member_name = obligation.name

    if obligation.convention is CallingConvention.COROUTINE:
        async def stub(self, *args, **kwargs):
            raise NotImplementedInvocation(type_name, member_name)
    else:
        def stub(self, *args, **kwargs):
            raise NotImplementedInvocation(type_name, member_name)

    _describe(stub, type_name, obligation)
    return stub


def _property_stub(type_name: str, obligation: MemberSignature) -> property:
    member_name = obligation.name
    original = obligation.member

    def getter(self):
        raise NotImplementedInvocation(type_name, member_name)

    _describe(getter, type_name, obligation)

    setter = deleter = None
    if isinstance(original, property) and original.fset is not None:
        def setter(self, value):
            raise NotImplementedInvocation(type_name, member_name)
    if isinstance(original, property) and original.fdel is not None:
        def deleter(self):
            raise NotImplementedInvocation(type_name, member_name)

    return property(getter, setter, deleter, getter.__doc__)


def _describe(stub: Callable, type_name: str, obligation: MemberSignature) -> None:
    """Give *stub* the public face of the member it replaces."""
    stub.__name__ = obligation.name
    stub.__qualname__ = f"{type_name}.{obligation.name}"

    source = obligation.member
    if isinstance(source, property):
        source = source.fget
    stub.__doc__ = getattr(source, "__doc__", None)

    signature = obligation.signature
    if signature is None:
        return
    stub.__signature__ = signature
    annotations = {
        p.name: p.annotation
        for p in signature.parameters.values()
        if p.annotation is not inspect.Parameter.empty
    }
    if signature.return_annotation is not inspect.Signature.empty:
        annotations["return"] = signature.return_annotation
    stub.__annotations__ = annotations


def populate_namespace(
    namespace: dict[str, Any],
    contract: type,
    obligations: Iterable[MemberSignature],
    type_name: str,
    module: str,
) -> dict[str, Any]:
    """Fill the class body of a synthesized type."""
    namespace["__module__"] = module
    namespace["__qualname__"] = type_name
    namespace["__doc__"] = (
        f"Concrete stand-in for {contract.__qualname__}. "
        "Every stubbed member raises NotImplementedInvocation."
    )
    namespace[CONTRACT_ATTRIBUTE] = contract

    for obligation in obligations:
        if obligation.name in namespace:
            # One stub accepts any arguments, so it covers every overload
            logger.debug("%s: %s shares a stub with an earlier obligation",
                         type_name, obligation.describe())
            continue
        namespace[obligation.name] = make_stub(type_name, obligation)
    return namespace


class TypeEmitter:
    """Emits synthesized types at runtime with ``types.new_class``."""

    strategy = "runtime"

    def __init__(self, config: Optional[SynthesisConfig] = None):
        self.config = config or SynthesisConfig()

    def emit(self, contract: type, obligations: Iterable[MemberSignature]) -> type:
        type_name = synthesized_name(contract, self.config.type_suffix)
        obligations = list(obligations)

        def exec_body(namespace):
            populate_namespace(namespace, contract, obligations, type_name, self.config.module)

        concrete = types.new_class(type_name, (contract,), None, exec_body)
        logger.debug("Emitted %s.%s with %d stub(s)",
                     self.config.module, type_name, len(obligations))
        return concrete
