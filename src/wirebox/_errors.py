from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Hashable, Sequence


def _name(token: object) -> str:
    return getattr(token, "__qualname__", None) or repr(token)


class ResolutionError(RuntimeError):
    pass


class DuplicateRegistrationError(ResolutionError):
    """The token already has a registration; the container never overrides one."""

    def __init__(self, token: Hashable) -> None:
        self.token = token
        msg = f"{_name(token)} is already registered."
        super().__init__(msg)


class UnregisteredTypeError(ResolutionError):
    def __init__(self, token: object) -> None:
        self.token = token
        msg = f"The type {_name(token)} could not be resolved by the container."
        super().__init__(msg)


class NoConstructorError(ResolutionError):
    def __init__(self, impl: object, reason: str) -> None:
        self.impl = impl
        msg = f"Registered type {_name(impl)} doesn't present a constructor for use: {reason}."
        super().__init__(msg)


class UnannotatedParameterError(ResolutionError):
    def __init__(self, impl: type, name: str) -> None:
        self.impl = impl
        self.name = name
        msg = (
            f"Cannot satisfy constructor parameter '{name}' for {_name(impl)}: "
            "the parameter has no usable type annotation."
        )
        super().__init__(msg)


class CyclicDependencyError(ResolutionError):
    """Raised by containers created with ``detect_cycles=True``.

    ``path`` lists the tokens from the first occurrence of the repeated token
    down to (and including) the repeat.
    """

    def __init__(self, path: Sequence[object]) -> None:
        self.path = tuple(path)
        msg = "Cyclic dependency detected: " + " -> ".join(_name(t) for t in self.path)
        super().__init__(msg)


class HandlerResolveError(ResolutionError):
    def __init__(self, name: str) -> None:
        self.name = name
        msg = f"Couldn't create handler for name: {name}"
        super().__init__(msg)
