"""
Frontend: resolve contract references given as text.

A reference names a class inside a module or a Python file:

    shapes.geometry:Shape
    path/to/contracts.py:Outer.Inner
"""

import importlib
import importlib.util
import sys
import types
from pathlib import Path
from typing import Any

from concretizer.contracts.analyzer import resolve_contract
from concretizer.errors import InvalidContract


def load_python_file(filepath: Path) -> types.ModuleType:
    """
    Load and execute a Python source file as a module.

    The module is registered in ``sys.modules`` under the file stem so that
    annotations inside it resolve.  A stem already taken by a module loaded
    from another file (``json.py`` against the standard library) is refused.

    Args:
        filepath: Path to .py file

    Returns:
        The executed module
    """
    filepath = Path(filepath).resolve()
    if not filepath.is_file():
        raise FileNotFoundError(f"File not found: {filepath}")

    name = filepath.stem
    previous = sys.modules.get(name)
    if previous is not None and _module_path(previous) != filepath:
        raise ImportError(
            f"Cannot load {filepath}: module name {name!r} is already taken by "
            f"{getattr(previous, '__file__', None) or 'a built-in module'}"
        )

    spec = importlib.util.spec_from_file_location(name, filepath)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load {filepath} as a Python module")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        if previous is None:
            del sys.modules[name]
        else:
            sys.modules[name] = previous
        raise
    return module


def _module_path(module: types.ModuleType):
    filename = getattr(module, "__file__", None)
    return Path(filename).resolve() if filename else None


def load_contract(reference: str) -> type:
    """
    Resolve ``<module or file>:<Qualname>`` to a class.

    Args:
        reference: Contract reference

    Returns:
        The referenced class
    """
    target, sep, qualname = reference.rpartition(":")
    if not sep or not target or not qualname:
        raise InvalidContract(reference, "expected '<module or file>:<Qualname>'")

    if target.endswith(".py") or Path(target).is_file():
        module = load_python_file(Path(target))
    else:
        try:
            module = importlib.import_module(target)
        except ModuleNotFoundError as e:
            raise InvalidContract(reference, f"module {target!r} not found") from e

    obj: Any = module
    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise InvalidContract(reference, f"{target} has no attribute {qualname!r}") from e
    return resolve_contract(obj)
