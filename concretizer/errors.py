"""
Error taxonomy for contract resolution and type synthesis.

- ``InvalidContract``: the contract reference is missing or is not a class.
- ``SynthesisUnavailable``: this process cannot (or must not) generate types.
- ``NotImplementedInvocation``: raised by every synthesized stub when called.
"""

from __future__ import annotations

from typing import Any


class ConcretizerError(Exception):
    """Base class for errors raised by contract analysis and synthesis."""


class InvalidContract(ConcretizerError, TypeError):
    """The contract reference is absent or does not name a class."""

    def __init__(self, contract: Any, reason: str = "contract reference is missing"):
        self.contract = contract
        self.reason = reason
        super().__init__(f"Invalid contract {contract!r}: {reason}")


class SynthesisUnavailable(ConcretizerError, RuntimeError):
    """Concrete types cannot be generated in this process."""


class NotImplementedInvocation(NotImplementedError):
    """A synthesized stub member was invoked."""

    def __init__(self, type_name: str, member_name: str):
        self.type_name = type_name
        self.member_name = member_name
        super().__init__(
            f"{type_name}.{member_name} is a synthesized stub and has no implementation"
        )
