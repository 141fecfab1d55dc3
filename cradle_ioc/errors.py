from __future__ import annotations

from collections.abc import Hashable, Iterable
from typing import Any

from .utils import describe_name


class ContainerError(Exception):
    """Base class for every error raised by the container."""


class ContainerTypeError(ContainerError, TypeError):
    def __init__(self, func_description: str, param_name: str, expected_type: str, given: Any):
        self.func_description = func_description
        self.param_name = param_name
        self.expected_type = expected_type
        self.given = given
        super().__init__(f"{func_description}: expected {param_name} to be {expected_type}, but got {given!r}.")

    @classmethod
    def check(cls, condition: Any, func_description: str, param_name: str, expected_type: str, given: Any):
        if not condition:
            raise cls(func_description, param_name, expected_type, given)
        return condition


class ResolutionError(ContainerError):
    def __init__(self, name: Hashable, path: Iterable[Hashable], reason: str | None = None):
        self.name = name
        self.path = (*path, name)
        self.reason = reason
        super().__init__(self.message)

    @property
    def resolution_path(self) -> str:
        return " -> ".join(describe_name(n) for n in self.path)

    @property
    def message(self) -> str:
        msg = f"Could not resolve '{describe_name(self.name)}'."
        if self.reason:
            msg += f" {self.reason}"
        return f"{msg}\n\nResolution path: {self.resolution_path}"

    def __str__(self):
        return self.message


class RegistrationError(ContainerError):
    def __init__(self, name: Hashable, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Could not register '{describe_name(name)}'. {reason}")


class ReadOnlyCradleError(ContainerError, AttributeError):
    def __init__(self, name: Hashable):
        super().__init__(
            f"Attempted setting property '{describe_name(name)}' on container cradle - this is not allowed."
        )
        self.name = name


class ParameterParseError(ContainerError, SyntaxError):
    pass


class DisposalError(ContainerError):
    def __init__(self, errors: list[BaseException]):
        self.errors = errors
        super().__init__(self.message)

    @property
    def message(self) -> str:
        details = "\n".join(f"  - {type(e).__name__}: {e}" for e in self.errors)
        return f"{len(self.errors)} disposer(s) failed while disposing the container:\n{details}"

    def __str__(self):
        return self.message
