"""
Ahead-of-time emission: synthesized types as Python source.

``SourceEmitter.render_module`` produces a self-contained module that can be
written next to the code that needs it, for environments that ship
generated code rather than building classes at runtime:

    from __future__ import annotations

    import shapes
    from concretizer.errors import NotImplementedInvocation

    Shape = shapes.Shape


    class ShapeImpl(Shape):
        def area(self) -> float:
            raise NotImplementedInvocation('ShapeImpl', 'area')

``SourceEmitter.emit`` compiles the same class body in-process, binding
every object the body refers to directly in the module namespace, so
contracts declared in local scopes work too.
"""

from __future__ import annotations

import inspect
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from concretizer.config import SynthesisConfig
from concretizer.contracts.members import CallingConvention, MemberSignature, instance_parameters
from concretizer.errors import NotImplementedInvocation
from concretizer.naming import TypeNameFormatter
from concretizer.synthesis.emitter import CONTRACT_ATTRIBUTE, synthesized_name


logger = logging.getLogger(__name__)

INDENT = "    "

_LITERAL_DEFAULTS = (int, str, bytes, bool, type(None))


class BindingFormatter(TypeNameFormatter):
    """Formatter that records every object a rendered name refers to."""

    def __init__(self):
        self.references: dict[str, Any] = {}

    def bind(self, obj: Any, preferred: str) -> str:
        """Bind *obj* under *preferred*, or under a numbered alias if taken."""
        alias = preferred
        counter = 1
        while alias in self.references and self.references[alias] is not obj:
            counter += 1
            alias = f"{preferred}_{counter}"
        self.references[alias] = obj
        return alias

    def name_of(self, obj: Any, default: str) -> str:
        preferred = getattr(obj, "__name__", None) or default.rpartition(".")[2]
        return self.bind(obj, preferred)


@dataclass
class GeneratedSource:
    """Rendered class body plus the objects it refers to."""
    type_name: str
    body: str
    references: dict[str, Any] = field(default_factory=dict)

    @property
    def filename(self) -> str:
        return f"<concretizer:{self.type_name}>"

    def import_lines(self) -> list[str]:
        """Statements that bind every reference in a standalone module."""
        modules: list[str] = []
        bindings: list[str] = []
        comments: list[str] = []
        for alias, obj in self.references.items():
            module = getattr(obj, "__module__", None)
            qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", alias)
            if module is None or "<locals>" in qualname:
                comments.append(f"# {alias} is defined in a local scope and must be bound by the caller")
                continue
            if obj is NotImplementedInvocation:
                continue
            if module not in modules:
                modules.append(module)
            bindings.append(f"{alias} = {module}.{qualname}")

        lines = [f"import {module}" for module in modules]
        lines.append("from concretizer.errors import NotImplementedInvocation")
        lines.append("")
        lines.extend(comments)
        lines.extend(bindings)
        return lines

    def module_text(self) -> str:
        header = ["from __future__ import annotations", ""]
        return "\n".join(header + self.import_lines() + ["", ""]) + self.body


class SourceEmitter:
    """Emits synthesized types by rendering and compiling Python source."""

    strategy = "source"

    def __init__(self, config: Optional[SynthesisConfig] = None):
        self.config = config or SynthesisConfig()

    def render(self, contract: type, obligations: Iterable[MemberSignature]) -> GeneratedSource:
        type_name = synthesized_name(contract, self.config.type_suffix)
        formatter = BindingFormatter()
        formatter.bind(NotImplementedInvocation, "NotImplementedInvocation")
        base = formatter.name_of(contract, contract.__qualname__)

        lines = [
            f"class {type_name}({base}):",
            f'{INDENT}"""Concrete stand-in for {contract.__qualname__}."""',
            "",
            f"{INDENT}{CONTRACT_ATTRIBUTE} = {base}",
        ]
        obligations = list(obligations)
        shared = Counter(obligation.name for obligation in obligations)
        rendered: set[str] = set()
        for obligation in obligations:
            if obligation.name in rendered:
                continue
            rendered.add(obligation.name)
            lines.append("")
            lines.extend(
                INDENT + line
                for line in self._render_member(
                    type_name, obligation, formatter, overloaded=shared[obligation.name] > 1,
                )
            )

        return GeneratedSource(
            type_name=type_name,
            body="\n".join(lines) + "\n",
            references=formatter.references,
        )

    def render_module(self, contract: type, obligations: Iterable[MemberSignature]) -> str:
        return self.render(contract, obligations).module_text()

    def emit(self, contract: type, obligations: Iterable[MemberSignature]) -> type:
        generated = self.render(contract, obligations)
        namespace: dict[str, Any] = dict(generated.references)
        namespace["__name__"] = self.config.module
        code = compile("from __future__ import annotations\n" + generated.body,
                       generated.filename, "exec")
        exec(code, namespace)
        concrete = namespace[generated.type_name]
        logger.debug("Compiled %s from generated source", generated.type_name)
        return concrete

    def _render_member(
        self,
        type_name: str,
        obligation: MemberSignature,
        formatter: TypeNameFormatter,
        overloaded: bool = False,
    ) -> list[str]:
        raise_line = f"{INDENT}raise NotImplementedInvocation({type_name!r}, {obligation.name!r})"
        returns = self._returns(obligation, formatter)

        if obligation.convention is CallingConvention.PROPERTY:
            lines = ["@property", f"def {obligation.name}(self){returns}:", raise_line]
            original = obligation.member
            if isinstance(original, property) and original.fset is not None:
                lines += ["", f"@{obligation.name}.setter",
                          f"def {obligation.name}(self, value):", raise_line]
            if isinstance(original, property) and original.fdel is not None:
                lines += ["", f"@{obligation.name}.deleter",
                          f"def {obligation.name}(self):", raise_line]
            return lines

        keyword = "async def" if obligation.convention is CallingConvention.COROUTINE else "def"
        if overloaded:
            # One stub stands in for every obligation with this name
            parameters = "self, *args, **kwargs"
        else:
            parameters = self._parameters(obligation, formatter)
        return [f"{keyword} {obligation.name}({parameters}){returns}:", raise_line]

    def _returns(self, obligation: MemberSignature, formatter: TypeNameFormatter) -> str:
        if obligation.return_type is inspect.Signature.empty:
            return ""
        return f" -> {formatter.format(obligation.return_type)}"

    def _parameters(self, obligation: MemberSignature, formatter: TypeNameFormatter) -> str:
        if obligation.signature is None:
            return "self, *args, **kwargs"

        parts = ["self"]
        saw_keyword_marker = False
        parameters = instance_parameters(obligation.signature)
        for index, p in enumerate(parameters):
            if p.kind is inspect.Parameter.VAR_POSITIONAL:
                saw_keyword_marker = True
            elif p.kind is inspect.Parameter.KEYWORD_ONLY and not saw_keyword_marker:
                parts.append("*")
                saw_keyword_marker = True
            parts.append(self._parameter(p, formatter))
            following = parameters[index + 1] if index + 1 < len(parameters) else None
            if p.kind is inspect.Parameter.POSITIONAL_ONLY and (
                following is None or following.kind is not inspect.Parameter.POSITIONAL_ONLY
            ):
                parts.append("/")
        return ", ".join(parts)

    def _parameter(self, p: inspect.Parameter, formatter: TypeNameFormatter) -> str:
        prefix = {
            inspect.Parameter.VAR_POSITIONAL: "*",
            inspect.Parameter.VAR_KEYWORD: "**",
        }.get(p.kind, "")
        text = prefix + p.name
        annotation = formatter.format(p.annotation)
        if annotation:
            text += f": {annotation}"
        if p.default is not inspect.Parameter.empty:
            default = repr(p.default) if isinstance(p.default, _LITERAL_DEFAULTS) else "..."
            text += f" = {default}" if annotation else f"={default}"
        return text
