"""
Readable names for annotations and member signatures.

Annotations are rendered the way a developer would write them in source:

    int                         -> int
    typing.List[int]            -> list[int]
    typing.Optional[str]        -> str | None
    typing.Callable[[int], str] -> Callable[[int], str]
    Outer.Inner                 -> Outer.Inner

Subclasses of ``TypeNameFormatter`` can intercept every named object
(classes, type variables, typing special forms) through ``name_of``, which
is how the source emitter binds the objects a generated module refers to.
"""

from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Iterable


_UNION_ORIGINS = (typing.Union, types.UnionType)


class TypeNameFormatter:
    """Render annotations as source-like text."""

    def format(self, annotation: Any) -> str:
        if annotation is inspect.Parameter.empty:
            return ""
        if annotation is None or annotation is type(None):
            return "None"
        if annotation is Ellipsis:
            return "..."
        if isinstance(annotation, str):
            # Unresolved forward reference
            return annotation
        if isinstance(annotation, typing.ForwardRef):
            return annotation.__forward_arg__
        if annotation is typing.Any:
            return self.name_of(annotation, "Any")
        if isinstance(annotation, list):
            return "[" + ", ".join(self.format(arg) for arg in annotation) + "]"

        origin = typing.get_origin(annotation)
        if origin is not None:
            return self._format_generic(annotation, origin, typing.get_args(annotation))

        if isinstance(annotation, typing.TypeVar):
            return self.name_of(annotation, annotation.__name__)
        if isinstance(annotation, type):
            if annotation.__module__ == "builtins":
                return annotation.__name__
            return self.name_of(annotation, annotation.__qualname__)

        name = getattr(annotation, "__qualname__", None) or getattr(annotation, "__name__", None)
        if name:
            return self.name_of(annotation, name)
        return repr(annotation).replace("typing.", "")

    def name_of(self, obj: Any, default: str) -> str:
        """Name used for a class, type variable or special form."""
        return default

    def _format_generic(self, annotation: Any, origin: Any, args: tuple) -> str:
        if origin in _UNION_ORIGINS:
            return " | ".join(self.format(arg) for arg in args)
        if origin is typing.Annotated:
            return self.format(args[0])
        if origin is typing.Literal:
            literal = self.name_of(origin, "Literal")
            return f"{literal}[{', '.join(repr(arg) for arg in args)}]"

        name = self.format(origin)
        if not args:
            return name
        return f"{name}[{', '.join(self.format(arg) for arg in args)}]"


_default_formatter = TypeNameFormatter()


def format_type_name(annotation: Any) -> str:
    """Readable, source-like name for an annotation."""
    return _default_formatter.format(annotation)


def format_member(
    name: str,
    parameter_types: Iterable[Any],
    return_type: Any = inspect.Signature.empty,
    formatter: TypeNameFormatter | None = None,
) -> str:
    """
    One-line rendering of a member signature, e.g. ``area(int, str) -> float``.

    Unannotated parameters show as ``?``.
    """
    formatter = formatter or _default_formatter
    params = ", ".join(formatter.format(t) or "?" for t in parameter_types)
    text = f"{name}({params})"
    if return_type is not inspect.Signature.empty:
        text += f" -> {formatter.format(return_type)}"
    return text
