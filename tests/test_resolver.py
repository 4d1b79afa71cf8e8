from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront_core.api.errors import classify
from storefront_core.core.exceptions import AppError
from storefront_core.core.resolver import (
    CircularDependencyError,
    DuplicateKeyError,
    InvalidRegistrationError,
    Resolver,
    Scope,
    UnknownKeyError,
    _Registration,
)


class Counter:
    def __init__(self):
        self.value = 0

    def bump(self):
        self.value += 1
        return object()


def test_singleton_returns_same_instance():
    resolver = Resolver()
    resolver.register("userRepository", lambda _r: object())

    first = resolver.resolve("userRepository")
    assert resolver.resolve("userRepository") is first
    assert resolver.resolve("userRepository") is first


def test_transient_scope_builds_each_time():
    counter = Counter()
    resolver = Resolver()
    resolver.register("session", lambda _r: counter.bump(), scope=Scope.TRANSIENT)

    assert resolver.resolve("session") is not resolver.resolve("session")
    assert counter.value == 2


def test_factory_is_lazy():
    counter = Counter()
    resolver = Resolver()
    resolver.register("db", lambda _r: counter.bump())
    assert counter.value == 0

    resolver.resolve("db")
    resolver.resolve("db")
    assert counter.value == 1


def test_unknown_key_raises():
    resolver = Resolver()
    with pytest.raises(UnknownKeyError) as info:
        resolver.resolve("nope")
    assert info.value.key == "nope"


def test_resolver_errors_surface_as_generic_500():
    body = classify(UnknownKeyError("userRepository"))
    assert body.to_wire() == {
        "error": "InternalServerError",
        "message": "An internal server error occurred",
        "statusCode": 500,
    }
    assert isinstance(UnknownKeyError("x"), AppError)


def test_duplicate_registration_fails_and_keeps_first():
    resolver = Resolver()
    resolver.register("cache", lambda _r: "first")

    with pytest.raises(DuplicateKeyError):
        resolver.register("cache", lambda _r: "second")
    with pytest.raises(DuplicateKeyError):
        resolver.register_instance("cache", "third")

    assert resolver.resolve("cache") == "first"


def test_overwrite_replaces_registration_and_cached_instance():
    resolver = Resolver()
    resolver.register("cache", lambda _r: "first")
    assert resolver.resolve("cache") == "first"

    resolver.register("cache", lambda _r: "second", overwrite=True)
    assert resolver.resolve("cache") == "second"


def test_factory_resolves_its_collaborators():
    resolver = Resolver()
    resolver.register("service", lambda r: ("service", r.resolve("repo")))
    resolver.register("repo", lambda _r: "repo")

    assert resolver.resolve("service") == ("service", "repo")


def test_circular_dependency_is_detected():
    resolver = Resolver()
    resolver.register("a", lambda r: r.resolve("b"))
    resolver.register("b", lambda r: r.resolve("a"))

    with pytest.raises(CircularDependencyError) as info:
        resolver.resolve("a")
    assert info.value.chain == ["a", "b", "a"]
    assert "a" not in resolver._instances
    assert "b" not in resolver._instances


def test_self_dependency_is_detected():
    resolver = Resolver()
    resolver.register("a", lambda r: r.resolve("a"))

    with pytest.raises(CircularDependencyError) as info:
        resolver.resolve("a")
    assert info.value.chain == ["a", "a"]


def test_resolver_usable_after_cycle_error():
    resolver = Resolver()
    resolver.register("a", lambda r: r.resolve("a"))
    resolver.register("ok", lambda _r: 42)

    with pytest.raises(CircularDependencyError):
        resolver.resolve("a")
    assert resolver.resolve("ok") == 42


def test_failing_factory_caches_nothing():
    attempts = []

    def factory(_r):
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("connection refused")
        return "db"

    resolver = Resolver()
    resolver.register("db", factory)

    with pytest.raises(RuntimeError):
        resolver.resolve("db")
    assert resolver.resolve("db") == "db"
    assert len(attempts) == 2


def test_non_callable_is_registered_as_instance():
    resolver = Resolver()
    config = {"url": "redis://localhost"}
    resolver.register("config", config)
    assert resolver.resolve("config") is config


def test_non_callable_with_transient_scope_is_rejected():
    resolver = Resolver()
    with pytest.raises(InvalidRegistrationError) as info:
        resolver.register("cfg", {"a": 1}, scope=Scope.TRANSIENT)
    assert info.value.key == "cfg"
    assert "cfg" not in resolver


def test_registration_without_factory_or_instance_raises_resolver_error():
    resolver = Resolver()
    resolver._registrations["ghost"] = _Registration(
        key="ghost", factory=None, scope=Scope.TRANSIENT
    )
    with pytest.raises(InvalidRegistrationError):
        resolver.resolve("ghost")
    assert classify(InvalidRegistrationError("boom", key="ghost")).status_code == 500


def test_register_instance_keeps_callables_as_is():
    def handler(_r):  # pragma: no cover - never called
        raise AssertionError("must not be treated as a factory")

    resolver = Resolver()
    resolver.register_instance("handler", handler)
    assert resolver.resolve("handler") is handler


def test_resolve_as_returns_instance():
    resolver = Resolver()
    resolver.register_instance("name", "storefront")
    assert resolver.resolve_as("name", str) == "storefront"


def test_introspection():
    resolver = Resolver()
    resolver.register("a", lambda _r: 1)
    resolver.register_instance("b", 2)

    assert "a" in resolver
    assert "missing" not in resolver
    assert resolver.keys() == ["a", "b"]
    assert list(resolver) == ["a", "b"]


def test_concurrent_first_resolution_constructs_once():
    counter = Counter()
    lock = threading.Lock()

    def factory(_r):
        with lock:
            counter.value += 1
        time.sleep(0.05)
        return object()

    resolver = Resolver()
    resolver.register("db", factory)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        return resolver.resolve("db")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: worker(), range(8)))

    assert counter.value == 1
    assert all(r is results[0] for r in results)


def test_independent_resolvers_are_isolated():
    one, two = Resolver(), Resolver()
    one.register_instance("db", "one")
    two.register_instance("db", "two")

    assert one.resolve("db") == "one"
    assert two.resolve("db") == "two"
