"""Composition root: registers the collaborators a service resolves by key."""

from __future__ import annotations

import structlog

from storefront_core.api.errors import ErrorResponder
from storefront_core.api.routers.members import MEMBER_REPOSITORY_KEY
from storefront_core.core.config import Settings
from storefront_core.core.resolver import Resolver
from storefront_core.repositories.interfaces import MemberRow
from storefront_core.repositories.memory import InMemoryMemberRepository

SETTINGS_KEY = "settings"
ERROR_RESPONDER_KEY = "errorResponder"

_DEMO_MEMBERS = (
    MemberRow(id="m-1", email="alice@example.com", name="Alice"),
    MemberRow(id="m-2", email="bob@example.com", name="Bob"),
)


def build_resolver(settings: Settings) -> Resolver:
    """Return a resolver with the default registrations of a service."""
    resolver = Resolver()
    resolver.register_instance(SETTINGS_KEY, settings)
    resolver.register(
        ERROR_RESPONDER_KEY,
        lambda r: ErrorResponder(expose_messages=r.resolve(SETTINGS_KEY).expose_error_messages),
    )
    resolver.register(MEMBER_REPOSITORY_KEY, lambda _r: InMemoryMemberRepository(_DEMO_MEMBERS))
    structlog.get_logger(__name__).info("resolver_built", keys=resolver.keys())
    return resolver
