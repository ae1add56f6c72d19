"""Minimal inversion of control container.

This package maps abstract service types to concrete implementations and
builds instances on demand, injecting constructor dependencies recursively by
their type annotations.

Exports:
- `Container`: registry plus resolver; `register`, `resolve` and `exists`.
- `Lifecycle`: Enum for instance sharing (transient or singleton).
- `HandlerFactory`: name-based adapter for host applications that create one
  handler per request.
- Errors, all subclasses of `ResolutionError`.
"""

from ._container import Container, Lifecycle
from ._errors import (
    CyclicDependencyError,
    DuplicateRegistrationError,
    HandlerResolveError,
    NoConstructorError,
    ResolutionError,
    UnannotatedParameterError,
    UnregisteredTypeError,
)
from ._factory import HandlerFactory


__all__ = [
    "Container",
    "CyclicDependencyError",
    "DuplicateRegistrationError",
    "HandlerFactory",
    "HandlerResolveError",
    "Lifecycle",
    "NoConstructorError",
    "ResolutionError",
    "UnannotatedParameterError",
    "UnregisteredTypeError",
]
