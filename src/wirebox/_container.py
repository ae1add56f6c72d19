from __future__ import annotations

import inspect
import logging
import sys
import threading
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    ForwardRef,
    Generic,
    Protocol,
    TypeVar,
    cast,
    get_type_hints,
)

from ._errors import (
    CyclicDependencyError,
    DuplicateRegistrationError,
    NoConstructorError,
    UnannotatedParameterError,
    UnregisteredTypeError,
)


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    T = TypeVar("T")

_EMPTY: Any = object()

if sys.version_info >= (3, 14):
    import annotationlib

    # unresolvable names come back as ForwardRef instead of raising
    _RAW_ANNOTATIONS: dict[str, Any] = {"format": annotationlib.Format.FORWARDREF}
else:
    _RAW_ANNOTATIONS = {}


class Lifecycle(Enum):
    TRANSIENT = "transient"
    SINGLETON = "singleton"


@dataclass(eq=False)
class Registration:
    """A registered token and the implementation that satisfies it.

    Subclasses decide how instances are shared; see ``for_lifecycle``.
    """

    token: type
    impl: type
    lifecycle: ClassVar[Lifecycle]

    def get_instance(self, container: Container) -> object:
        raise NotImplementedError

    @staticmethod
    def for_lifecycle(lifecycle: Lifecycle) -> type[Registration]:
        if lifecycle is Lifecycle.SINGLETON:
            return SingletonRegistration
        if lifecycle is Lifecycle.TRANSIENT:
            return TransientRegistration
        msg = f"Unknown lifecycle: {lifecycle!r}"
        raise ValueError(msg)


@dataclass(eq=False)
class TransientRegistration(Registration):
    lifecycle: ClassVar[Lifecycle] = Lifecycle.TRANSIENT

    def get_instance(self, container: Container) -> object:
        return Constructor(container).construct(self.impl)


@dataclass(eq=False)
class SingletonRegistration(Registration):
    lifecycle: ClassVar[Lifecycle] = Lifecycle.SINGLETON

    # Re-entrant: a self-referencing graph recurses on the same thread instead of deadlocking.
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _instance: object = field(default=_EMPTY, init=False, repr=False)

    def get_instance(self, container: Container) -> object:
        instance = self._instance
        if instance is not _EMPTY:
            return instance

        with self._lock:
            if self._instance is _EMPTY:
                logger.debug("Constructing singleton %s for %s", self.impl.__qualname__, self.token.__qualname__)
                self._instance = Constructor(container).construct(self.impl)
            return self._instance


class Container:
    """Minimal IoC container.

    - register an implementation class for a token (class, ABC or Protocol)
    - resolve with constructor injection, recursively, by parameter annotations
    - lifecycles: transient (default) / singleton

    Singletons are created lazily, at most once per registration, even when
    several threads resolve them concurrently. Registration is not synchronized:
    finish registering before resolving from multiple threads.

    With ``detect_cycles=True`` a circular constructor dependency raises
    ``CyclicDependencyError``; otherwise it recurses until ``RecursionError``.
    """

    def __init__(self, *, detect_cycles: bool = False) -> None:
        self._registrations: dict[type, Registration] = {}
        self._detect_cycles = detect_cycles
        self._local = threading.local()

    def register(self, token: type[T], impl: type[T], lifecycle: Lifecycle = Lifecycle.TRANSIENT) -> None:
        """Register ``impl`` as the implementation of ``token``.

        Example:
          container.register(IRealm, LdapRealm)
          container.register(ILocator, LdapLocator, Lifecycle.SINGLETON)

        Raises ``DuplicateRegistrationError`` if ``token`` is already registered.
        """
        if token in self._registrations:
            raise DuplicateRegistrationError(token)

        _validate_impl(token, impl)

        registration_cls = Registration.for_lifecycle(lifecycle)
        self._registrations[token] = registration_cls(token=token, impl=impl)
        logger.debug("Registered %s -> %s (%s)", token.__qualname__, impl.__qualname__, lifecycle.value)

    def exists(self, token: object) -> bool:
        return token in self._registrations

    def __contains__(self, token: object) -> bool:
        return self.exists(token)

    def resolve(self, token: type[T]) -> T:
        """Resolve the token to an instance.

        The same path serves constructor parameters, so lifecycles are honored at
        every depth of the dependency graph.
        """
        reg = self._registrations.get(token)
        if reg is None:
            raise UnregisteredTypeError(token)

        if not self._detect_cycles:
            return cast("T", reg.get_instance(self))

        stack = self._resolving()
        if token in stack:
            raise CyclicDependencyError([*stack[stack.index(token) :], token])

        stack.append(token)
        try:
            return cast("T", reg.get_instance(self))
        finally:
            stack.pop()

    def _resolving(self) -> list[type]:
        # per thread, so concurrent resolutions never see each other's paths
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = self._local.stack = []
        return stack


class Constructor:
    def __init__(self, resolver: Container) -> None:
        self._resolver = resolver

    def construct(self, cls: type[T]) -> T:
        sig = _constructor_signature(cls)
        hints = _get_constructor_type_hints(cls)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for name, p in sig.parameters.items():
            if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
                continue

            value = self.resolve_param(cls, name, p, hints)
            if p.kind is p.KEYWORD_ONLY:
                kwargs[name] = value
            else:
                args.append(value)

        return cls(*args, **kwargs)

    def resolve_param(self, cls: type, name: str, p: inspect.Parameter, hints: dict[str, Any]) -> Any:
        """Resolving param.

        Resolution precedence:
        1. registration of the annotated type
        2. default
        3. error (unregistered annotation, or no annotation at all).
        """
        ann = hints.get(name, inspect.Parameter.empty)

        if ann is not inspect.Parameter.empty and self._resolver.exists(ann):
            return self._resolver.resolve(ann)

        if p.default is not inspect.Parameter.empty:
            return p.default

        if ann is inspect.Parameter.empty:
            raise UnannotatedParameterError(cls, name)
        raise UnregisteredTypeError(ann)


def _constructor_signature(cls: type) -> inspect.Signature:
    if _is_protocol(cls):
        raise NoConstructorError(cls, "protocol classes cannot be instantiated")

    if inspect.isabstract(cls):
        abstract = ", ".join(sorted(getattr(cls, "__abstractmethods__", ())))
        raise NoConstructorError(cls, f"abstract methods {abstract}")

    if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
        return inspect.Signature()

    try:
        return inspect.signature(cls)
    except (TypeError, ValueError) as e:
        raise NoConstructorError(cls, str(e)) from e


def _validate_impl(token: type, impl: type) -> None:
    """Validate that 'impl' implements 'token'.

    - For normal classes/ABCs: require issubclass(impl, token).
    - For Protocols: nominal via MRO, otherwise every public protocol member
      must be present on impl.
    """
    if not inspect.isclass(token):
        msg = f"Tokens must be types, got {token!r}"
        raise TypeError(msg)

    if not inspect.isclass(impl):
        msg = f"Implementation for {token.__qualname__} must be a class, got {impl!r}"
        raise TypeError(msg)

    if not _is_protocol(token):
        if not issubclass(impl, token):
            msg = f"Implementation {impl.__name__} must be a subclass of {token.__name__}"
            raise TypeError(msg)
        return

    if token in impl.__mro__:
        return

    missing = [name for name in _protocol_members(token) if not hasattr(impl, name)]
    if missing:
        msg = (
            f"Implementation {impl.__name__} does not structurally conform to protocol "
            f"{token.__name__}: missing members: {', '.join(missing)}"
        )
        raise TypeError(msg)


def _protocol_members(proto: type) -> list[str]:
    """Public methods and properties declared by ``proto`` and its protocol bases."""
    names: list[str] = []
    for base in proto.__mro__:
        if base in (object, Protocol, Generic) or not _is_protocol(base):
            continue
        for name, attr in vars(base).items():
            if name.startswith("_") or name in names:
                continue
            if inspect.isfunction(attr) or isinstance(attr, (property, classmethod, staticmethod)):
                names.append(name)
    return names


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return inspect.isclass(tp) and bool(getattr(tp, "_is_protocol", False)) and tp is not Protocol


def _constructor_callable(cls: type) -> Any:
    """The ``__new__`` or ``__init__`` that ``inspect.signature(cls)`` reports.

    The most derived class defining either wins; ``__new__`` first within a class.
    """
    for base in cls.__mro__:
        if base is object:
            break
        if "__new__" in vars(base) and inspect.isfunction(cls.__new__):
            return cls.__new__
        if "__init__" in vars(base):
            return inspect.getattr_static(cls, "__init__")
    return None


def _get_constructor_type_hints(cls: type) -> dict[str, Any]:
    ctor = _constructor_callable(cls)
    if ctor is None:
        return {}

    try:
        hints = get_type_hints(ctor)
    except TypeError:
        hints = {}
    except NameError as exc:
        logger.warning("'%s' name error retrieving %s (%s) type hints", exc.name, cls.__name__, cls.__qualname__)
        hints = _evaluate_each_annotation(cls, ctor)

    hints.pop("return", None)
    return hints


def _evaluate_each_annotation(cls: type, ctor: Any) -> dict[str, Any]:
    """Evaluate annotations one by one; only the ones that fail are dropped."""
    globalns = getattr(ctor, "__globals__", {})
    localns = dict(vars(cls))
    hints: dict[str, Any] = {}
    for name, raw in inspect.get_annotations(ctor, **_RAW_ANNOTATIONS).items():
        if isinstance(raw, ForwardRef):
            logger.warning("Cannot evaluate %s.%s annotation %r", cls.__qualname__, name, raw)
            continue
        if not isinstance(raw, str):
            hints[name] = raw
            continue
        try:
            hints[name] = eval(raw, globalns, localns)  # noqa: S307
        except NameError as exc:
            logger.warning("'%s' name error evaluating %s.%s annotation", exc.name, cls.__qualname__, name)
    return hints
