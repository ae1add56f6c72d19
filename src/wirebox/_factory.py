from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._container import Container, Lifecycle
from ._errors import DuplicateRegistrationError, HandlerResolveError, UnregisteredTypeError


if TYPE_CHECKING:
    from collections.abc import Iterator


logger = logging.getLogger(__name__)


class HandlerFactory:
    """Creates request handlers by name through a container.

    Meant to sit behind a host application's per-request creation hook:
    handlers are registered once at startup, then ``create(name)`` is called
    for every request.
    """

    def __init__(self, container: Container) -> None:
        if container is None:
            msg = "Container must be non null."
            raise ValueError(msg)
        self._container = container
        self._handlers: dict[str, type] = {}

    def register_handler(self, name: str, handler_cls: type, lifecycle: Lifecycle = Lifecycle.TRANSIENT) -> None:
        if name in self._handlers:
            raise DuplicateRegistrationError(name)

        self._container.register(handler_cls, handler_cls, lifecycle)
        self._handlers[name] = handler_cls

    def create(self, name: str) -> object:
        if not name:
            msg = "Handler name cannot be null or empty."
            raise ValueError(msg)

        handler_cls = self._handlers.get(name)
        if handler_cls is None:
            raise HandlerResolveError(name)

        try:
            return self._container.resolve(handler_cls)
        except UnregisteredTypeError as e:
            logger.warning("Handler %r is missing a dependency: %s", name, e)
            raise HandlerResolveError(name) from e

    def names(self) -> Iterator[str]:
        return iter(self._handlers)
