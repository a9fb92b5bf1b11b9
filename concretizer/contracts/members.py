"""
Member signatures: the identity of an obligation.

A member is identified by its name and by the ordered sequence of its
parameter types (the instance parameter excluded).  Two members are the
same obligation iff both agree exactly; parameter types are compared
element by element with ``==``, so no variance or assignability is
involved.  Return type and calling convention are carried along so the
emitter can reproduce the member, but they never take part in matching.

Only instance members count:

    def / async def      -> METHOD / COROUTINE
    property             -> PROPERTY
    cached_property      -> PROPERTY (always concrete)

Static and class methods, data attributes, nested classes and the
class-construction hooks are not members.
"""

from __future__ import annotations

import abc
import functools
import inspect
import types
import typing
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Optional

from concretizer.naming import format_member


class CallingConvention(Enum):
    """How a member is invoked on an instance."""
    METHOD = auto()     # def
    COROUTINE = auto()  # async def
    PROPERTY = auto()   # attribute access through a getter


# Class construction hooks and compiler-generated attributes
MACHINERY_NAMES = frozenset({
    "__new__",
    "__init__",
    "__init_subclass__",
    "__subclasshook__",
    "__class_getitem__",
    "__annotate__",
    "__annotate_func__",
})

# Bases that only carry abc/typing machinery
INFRASTRUCTURE_BASES = (object, abc.ABC, typing.Generic, typing.Protocol)

_EMPTY = inspect.Parameter.empty

_UNION_ORIGINS = (typing.Union, types.UnionType)


@dataclass(frozen=True)
class MemberSignature:
    """Identity of one member plus what is needed to stub it."""
    name: str
    parameter_types: tuple[Any, ...] = ()
    return_type: Any = inspect.Signature.empty
    convention: CallingConvention = CallingConvention.METHOD

    # Metadata, not identity
    declaring_type: Optional[type] = field(default=None, compare=False)
    is_abstract: bool = field(default=False, compare=False)
    signature: Optional[inspect.Signature] = field(default=None, compare=False, repr=False)
    member: Any = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> tuple[str, tuple[Any, ...]]:
        return (self.name, self.parameter_types)

    @property
    def qualified_name(self) -> str:
        """``<module>.<Qualname>.<name>``, the explicit-implementation spelling."""
        owner = self.declaring_type
        if owner is None:
            return self.name
        return f"{owner.__module__}.{owner.__qualname__}.{self.name}"

    def matches(self, other: "MemberSignature") -> bool:
        return self.name == other.name and parameters_match(self, other)

    def describe(self) -> str:
        return format_member(self.name, self.parameter_types, self.return_type)


def parameters_match(first: MemberSignature, second: MemberSignature) -> bool:
    """
    True iff both parameter-type sequences agree, in order.

    An unannotated parameter matches any type.
    """
    if len(first.parameter_types) != len(second.parameter_types):
        return False
    return all(
        a is _EMPTY or b is _EMPTY or a == b
        for a, b in zip(first.parameter_types, second.parameter_types)
    )


def is_interface(cls: Any) -> bool:
    """A Protocol class (a subclass that merely implements one does not count)."""
    if not isinstance(cls, type) or cls in INFRASTRUCTURE_BASES:
        return False
    return bool(cls.__dict__.get("_is_protocol", False))


def is_public_name(name: str) -> bool:
    if name.startswith("__") and name.endswith("__"):
        return True
    return not name.startswith("_")


def declared_members(
    cls: type,
    *,
    public_only: bool = False,
    treat_as_abstract: bool = False,
) -> list[MemberSignature]:
    """Instance members declared directly on *cls*, in declaration order."""
    members = []
    for name, value in vars(cls).items():
        if name in MACHINERY_NAMES:
            continue
        if public_only and not is_public_name(name):
            continue
        signature = member_signature(cls, name, value, force_abstract=treat_as_abstract)
        if signature is not None:
            members.append(signature)
    return members


def member_signature(
    owner: type,
    name: str,
    value: Any,
    force_abstract: bool = False,
) -> Optional[MemberSignature]:
    """
    Build the signature of the class attribute *name* = *value*.

    Returns None when the attribute is not an instance member.
    """
    if isinstance(value, property):
        func = value.fget
        convention = CallingConvention.PROPERTY
    elif isinstance(value, functools.cached_property):
        func = value.func
        convention = CallingConvention.PROPERTY
    elif inspect.isfunction(value):
        func = value
        if inspect.iscoroutinefunction(value):
            convention = CallingConvention.COROUTINE
        else:
            convention = CallingConvention.METHOD
    else:
        return None

    abstract = force_abstract or bool(getattr(value, "__isabstractmethod__", False))
    signature = resolved_signature(func)
    if signature is None:
        parameter_types: tuple[Any, ...] = ()
        return_type = inspect.Signature.empty
    else:
        parameter_types = tuple(p.annotation for p in instance_parameters(signature))
        return_type = signature.return_annotation

    return MemberSignature(
        name=name,
        parameter_types=parameter_types,
        return_type=return_type,
        convention=convention,
        declaring_type=owner,
        is_abstract=abstract,
        signature=signature,
        member=value,
    )


def resolved_signature(func: Any) -> Optional[inspect.Signature]:
    """
    Signature of *func* with string annotations resolved to objects.

    Annotations that cannot be resolved (undefined forward references)
    are kept as written.  ``typing`` aliases are normalized, so
    ``List[str]`` and ``list[str]`` describe the same parameter.
    """
    if func is None:
        return None
    signature = inspect.signature(func)
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError, SyntaxError):
        hints = {}

    parameters = [
        p.replace(annotation=normalize_annotation(hints.get(p.name, p.annotation)))
        for p in signature.parameters.values()
    ]
    return signature.replace(
        parameters=parameters,
        return_annotation=normalize_annotation(hints.get("return", signature.return_annotation)),
    )


def normalize_annotation(annotation: Any) -> Any:
    """
    Rewrite ``typing`` generic aliases with their runtime origin.

        typing.List[str]            -> list[str]
        typing.Optional[List[int]]  -> typing.Optional[list[int]]
        typing.Dict                 -> dict

    ``Literal``, ``Annotated`` and other special forms are left alone.
    """
    if isinstance(annotation, list):
        return [normalize_annotation(arg) for arg in annotation]

    origin = typing.get_origin(annotation)
    if origin is None:
        return annotation
    args = typing.get_args(annotation)

    if origin in _UNION_ORIGINS:
        return typing.Union[tuple(normalize_annotation(arg) for arg in args)]
    if not isinstance(origin, type):
        return annotation
    if not args:
        return origin

    normalized = tuple(normalize_annotation(arg) for arg in args)
    try:
        return origin[normalized if len(normalized) > 1 else normalized[0]]
    except TypeError:
        # Origin is not subscriptable at runtime
        return annotation


def instance_parameters(signature: inspect.Signature) -> list[inspect.Parameter]:
    """Parameters after the instance parameter (``self``)."""
    parameters = list(signature.parameters.values())
    if parameters and parameters[0].kind in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        return parameters[1:]
    return parameters
