"""
FastAPI dependencies for dependency injection.

Routes depend on a service (LinkService, Resolver) and an identity; the
services get their store, session factory and click dispatcher from here.
Tests override get_db, get_session_factory and get_identity_provider.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from links_app.auth.factory import AuthBackend, IdentityProviderFactory
from links_app.auth.strategies import IdentityProvider
from links_app.clicks.dispatchers import (
    BackgroundClickDispatcher,
    ClickDispatcher,
    QueueClickDispatcher,
)
from links_app.config import settings
from links_app.database.connection import get_db, get_session_factory
from links_app.queue.factory import QueueBackend, QueueFactory
from links_app.queue.strategies import QueueStrategy
from links_app.services.link_service import LinkService
from links_app.services.resolver import Resolver
from links_app.store.link_store import LinkStore


class ClickDispatchMode(Enum):
    BACKGROUND = "background"
    QUEUE = "queue"


@lru_cache()
def get_queue() -> QueueStrategy:
    """Click queue (singleton), only built when click_dispatch == "queue"."""
    return QueueFactory.create(QueueBackend(settings.queue_backend))


@lru_cache()
def get_identity_provider() -> IdentityProvider:
    return IdentityProviderFactory.create(AuthBackend(settings.auth_backend))


def get_current_user_id(
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Optional[str]:
    """
    Caller identity or None.

    Routes decide what a missing identity means; the mutation API answers
    {"error": "Unauthorized"} rather than raising.
    """
    return provider.resolve(request)


def get_link_store(db: Session = Depends(get_db)) -> LinkStore:
    return LinkStore(db)


def get_link_service(store: LinkStore = Depends(get_link_store)) -> LinkService:
    return LinkService(store)


def get_click_dispatcher(
    background_tasks: BackgroundTasks,
    session_factory: sessionmaker = Depends(get_session_factory),
) -> ClickDispatcher:
    mode = ClickDispatchMode(settings.click_dispatch)
    if mode == ClickDispatchMode.QUEUE:
        return QueueClickDispatcher(get_queue(), settings.queue_name)
    return BackgroundClickDispatcher(background_tasks, session_factory)


def get_resolver(
    store: LinkStore = Depends(get_link_store),
    dispatcher: ClickDispatcher = Depends(get_click_dispatcher),
) -> Resolver:
    return Resolver(store=store, dispatcher=dispatcher)
