"""Explicit dependency resolver for route handlers.

Handlers look collaborators up by string key instead of importing concrete
implementations. A resolver is an ordinary object built by the composition
root (``storefront_core.bootstrap``) or by a test; there is no module-level
registry.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from storefront_core.core.exceptions import InternalServerError

T = TypeVar("T")

Factory = Callable[["Resolver"], Any]

logger = structlog.get_logger(__name__)


class Scope(str, enum.Enum):
    SINGLETON = "singleton"
    TRANSIENT = "transient"


class ResolverError(InternalServerError):
    """Wiring defect. Always surfaces as a generic 500 to clients."""

    def __init__(self, message: str, *, key: str) -> None:
        super().__init__(message, details={"key": key})
        self.key = key


class DuplicateKeyError(ResolverError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Key already registered: {key}", key=key)


class UnknownKeyError(ResolverError):
    def __init__(self, key: str) -> None:
        super().__init__(f"No registration for key: {key}", key=key)


class InvalidRegistrationError(ResolverError):
    """Registration that cannot be honoured as requested."""


class CircularDependencyError(ResolverError):
    def __init__(self, chain: list[str]) -> None:
        super().__init__("Circular dependency: " + " -> ".join(chain), key=chain[-1])
        self.chain = list(chain)
        self.details["chain"] = self.chain


@dataclass
class _Registration:
    key: str
    factory: Factory | None
    scope: Scope


_MISSING = object()


class Resolver:
    """Maps service keys to factories or ready instances.

    Singletons are built lazily on first ``resolve`` and cached. Construction
    runs under a re-entrant lock so concurrent first resolutions of a key build
    exactly once, and factories may resolve other keys while it is held.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, _Registration] = {}
        self._instances: dict[str, Any] = {}
        self._lock = threading.RLock()
        # Keys currently under construction, in resolution order.
        self._constructing: list[str] = []

    def register(
        self,
        key: str,
        factory: Factory | Any,
        *,
        scope: Scope = Scope.SINGLETON,
        overwrite: bool = False,
    ) -> None:
        """Register ``factory`` under ``key``.

        Callables are factories and receive the resolver as their only
        argument. Anything else is stored as a ready instance, which only
        makes sense as a singleton; use :meth:`register_instance` for
        callable instances.
        """
        if not callable(factory):
            if scope is not Scope.SINGLETON:
                raise InvalidRegistrationError(
                    f"Ready instance registered with {scope.value} scope: {key}", key=key
                )
            self.register_instance(key, factory, overwrite=overwrite)
            return
        with self._lock:
            self._check_free(key, overwrite)
            self._registrations[key] = _Registration(key=key, factory=factory, scope=scope)
            self._instances.pop(key, None)
        logger.debug("resolver_registered", key=key, scope=scope.value)

    def register_instance(self, key: str, instance: Any, *, overwrite: bool = False) -> None:
        with self._lock:
            self._check_free(key, overwrite)
            self._registrations[key] = _Registration(key=key, factory=None, scope=Scope.SINGLETON)
            self._instances[key] = instance
        logger.debug("resolver_registered", key=key, scope=Scope.SINGLETON.value, instance=True)

    def resolve(self, key: str) -> Any:
        """Return the instance registered under ``key``.

        Raises:
            UnknownKeyError: ``key`` was never registered.
            CircularDependencyError: constructing ``key`` requires itself.
        """
        instance = self._instances.get(key, _MISSING)
        if instance is not _MISSING:
            return instance

        with self._lock:
            registration = self._registrations.get(key)
            if registration is None:
                raise UnknownKeyError(key)
            if key in self._constructing:
                raise CircularDependencyError([*self._constructing, key])
            if registration.scope is Scope.SINGLETON:
                instance = self._instances.get(key, _MISSING)
                if instance is not _MISSING:
                    return instance
            instance = self._construct(registration)
            if registration.scope is Scope.SINGLETON:
                self._instances[key] = instance
            return instance

    def resolve_as(self, key: str, type_: type[T]) -> T:
        """Typed variant of :meth:`resolve`. No runtime check is made."""
        return self.resolve(key)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._registrations)

    def __contains__(self, key: object) -> bool:
        return key in self._registrations

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def _check_free(self, key: str, overwrite: bool) -> None:
        if key in self._registrations and not overwrite:
            raise DuplicateKeyError(key)

    def _construct(self, registration: _Registration) -> Any:
        if registration.factory is None:
            raise InvalidRegistrationError(
                f"No factory or instance for key: {registration.key}", key=registration.key
            )
        self._constructing.append(registration.key)
        try:
            instance = registration.factory(self)
        finally:
            self._constructing.pop()
        logger.debug("resolver_constructed", key=registration.key, scope=registration.scope.value)
        return instance


__all__ = [
    "Resolver",
    "Scope",
    "Factory",
    "ResolverError",
    "DuplicateKeyError",
    "UnknownKeyError",
    "InvalidRegistrationError",
    "CircularDependencyError",
]
