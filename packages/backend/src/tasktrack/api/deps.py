"""Shared route dependencies — service factories.

Learn: Each request gets fresh service objects wired with explicit
collaborators: the request's db session, the shared token issuer and
password hasher, the avatar storage backend, and the event hooks the app
was created with. There is no global container to resolve from.
"""

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.dependencies import (
    get_current_user,
    get_password_hasher,
    get_token_issuer,
)
from tasktrack.auth.password import PasswordHasher
from tasktrack.auth.sessions import RequestContext
from tasktrack.auth.tokens import TokenIssuer
from tasktrack.config import settings
from tasktrack.db.engine import get_db
from tasktrack.events.hooks import EventHook
from tasktrack.media.storage import FileStorage, build_storage
from tasktrack.services.task_service import TaskService
from tasktrack.services.user_service import UserService


@lru_cache
def get_storage() -> FileStorage:
    return build_storage(settings)


def get_event_hooks(request: Request) -> list[EventHook]:
    return list(getattr(request.app.state, "event_hooks", ()))


def public_user_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    passwords: PasswordHasher = Depends(get_password_hasher),
    storage: FileStorage = Depends(get_storage),
    hooks: list[EventHook] = Depends(get_event_hooks),
) -> UserService:
    """UserService for unauthenticated routes (sign-up, login, public avatar)."""
    return UserService(db, tokens, passwords, storage, hooks=hooks)


def user_service(
    context: RequestContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
    passwords: PasswordHasher = Depends(get_password_hasher),
    storage: FileStorage = Depends(get_storage),
    hooks: list[EventHook] = Depends(get_event_hooks),
) -> UserService:
    """UserService bound to the authenticated principal."""
    return UserService(db, tokens, passwords, storage, context=context, hooks=hooks)


def task_service(
    context: RequestContext = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    hooks: list[EventHook] = Depends(get_event_hooks),
) -> TaskService:
    return TaskService(db, context, hooks=hooks)
