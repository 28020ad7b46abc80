"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request.

  bearer_token      Authorization header → raw token ("" if absent, never an error)
  get_current_user  token → SessionVerifier → RequestContext (401 on any failure)

The token issuer and password hasher are built once from settings and
shared; they are stateless. Tests override these factories to swap in a
different secret or a cheaper bcrypt work factor.
"""

from functools import lru_cache
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.password import PasswordHasher
from tasktrack.auth.sessions import RequestContext, SessionVerifier
from tasktrack.auth.tokens import TokenIssuer
from tasktrack.config import settings
from tasktrack.db.engine import get_db
from tasktrack.store.users import UserStore


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(settings.jwt_secret, settings.jwt_algorithm)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Strip "Bearer " off the Authorization header.

    A missing header yields "" so the verifier, not the parser, decides
    that the request is unauthenticated.
    """
    if not authorization:
        return ""
    return authorization.replace("Bearer ", "", 1).strip()


def get_session_verifier(
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> SessionVerifier:
    return SessionVerifier(UserStore(db), tokens)


async def get_current_user(
    request: Request,
    token: str = Depends(bearer_token),
    verifier: SessionVerifier = Depends(get_session_verifier),
) -> RequestContext:
    """Authenticate the request (required — AuthenticationError → 401).

    Learn: The context is built once per request and stored on
    request.state; FastAPI caches the dependency, so every Depends()
    in the same request receives this same object.
    """
    context = await verifier.authenticate(token)
    request.state.context = context
    structlog.contextvars.bind_contextvars(user_id=str(context.user_id))
    return context
