"""User service — sign-up, login, sessions, profile and avatar.

Learn: This is where the session lifecycle lives:

  sign_up     create user → issue token → add_session   → {user, token}
  login       check password → issue token → add_session → {user, token}
  logout      remove_session(principal, presented token)
  logout_all  remove_all_sessions(principal)

Every operation after login addresses the principal from the request
context directly; there is no method that takes a user id from the
client and mutates it (the public avatar lookup is read-only).

Collaborators (stores, token issuer, hasher, storage, image processor)
are all constructor arguments. Nothing is looked up globally.
"""

import asyncio
import uuid
from collections.abc import Mapping
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.auth.password import PasswordHasher
from tasktrack.auth.sessions import RequestContext
from tasktrack.auth.tokens import TokenIssuer
from tasktrack.db.models import NO_AVATAR, User
from tasktrack.errors import AuthenticationError, ResourceNotFoundError
from tasktrack.events.hooks import EventHook, emit
from tasktrack.events.types import (
    USER_AVATAR_DELETED,
    USER_AVATAR_UPDATED,
    USER_DELETED,
    USER_LOGGED_IN,
    USER_LOGGED_OUT,
    USER_LOGGED_OUT_ALL,
    USER_SIGNED_UP,
    USER_UPDATED,
)
from tasktrack.media.images import AVATAR_KINDS, AvatarProcessor
from tasktrack.media.storage import FileStorage, avatar_key
from tasktrack.schemas.user import AuthResult, AvatarPaths, UserCreate, UserRead, UserUpdate
from tasktrack.services.validation import update_fields, validate_input
from tasktrack.store.users import UserStore

logger = structlog.get_logger()

DEFAULT_AVATAR = {kind: NO_AVATAR for kind in AVATAR_KINDS}


class UserService:
    """Business logic for accounts, sessions and profiles."""

    def __init__(
        self,
        db: AsyncSession,
        tokens: TokenIssuer,
        passwords: PasswordHasher,
        storage: FileStorage,
        images: Optional[AvatarProcessor] = None,
        context: Optional[RequestContext] = None,
        hooks: Sequence[EventHook] = (),
    ):
        self.users = UserStore(db)
        self.tokens = tokens
        self.passwords = passwords
        self.storage = storage
        self.images = images or AvatarProcessor()
        self.context = context
        self.hooks = list(hooks)

    # ─── Sign-up & login ─────────────────────────────────

    async def sign_up(self, data: UserCreate | Mapping) -> AuthResult:
        """Create an account and its first session."""
        data = validate_input(UserCreate, data)

        user = await self.users.create(
            name=data.name,
            email=data.email,
            password_hash=self.passwords.hash(data.password),
            age=data.age,
        )
        token = self.tokens.issue(user.id)
        user = await self.users.add_session(user.id, token)

        logger.info("user.signed_up", user_id=str(user.id))
        await emit(self.hooks, USER_SIGNED_UP, {"user_id": str(user.id), "email": user.email})
        return AuthResult(user=self.to_read(user), token=token)

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and open a new session.

        Unknown email and wrong password fail identically.
        """
        user = await self.users.get_by_email(email)
        if user is None or not self.passwords.verify(password, user.password_hash):
            raise AuthenticationError()

        token = self.tokens.issue(user.id)
        user = await self.users.add_session(user.id, token)

        logger.info("user.logged_in", user_id=str(user.id), sessions=len(user.sessions))
        await emit(self.hooks, USER_LOGGED_IN, {"user_id": str(user.id)})
        return AuthResult(user=self.to_read(user), token=token)

    # ─── Sessions ────────────────────────────────────────

    async def logout(self) -> None:
        """Revoke the token this request was authenticated with."""
        ctx = self._require_context()
        await self.users.remove_session(ctx.user_id, ctx.token)
        await emit(self.hooks, USER_LOGGED_OUT, {"user_id": str(ctx.user_id)})

    async def logout_all(self) -> None:
        """Revoke every token of the principal, on every device."""
        ctx = self._require_context()
        await self.users.remove_all_sessions(ctx.user_id)
        await emit(self.hooks, USER_LOGGED_OUT_ALL, {"user_id": str(ctx.user_id)})

    # ─── Profile ─────────────────────────────────────────

    def get_profile(self) -> UserRead:
        """The principal as loaded at authentication time (no reload)."""
        return self.to_read(self._require_context().principal)

    async def update_profile(self, updates: UserUpdate | Mapping) -> UserRead:
        """Update name, email, password and/or age of the principal.

        Any other key (id, _id, ...), an explicit null or an empty update is
        rejected before the database is touched. A new password is hashed
        here; the plaintext never reaches the store.
        """
        ctx = self._require_context()
        changes = update_fields(UserUpdate, updates)

        if "password" in changes:
            changes["password_hash"] = self.passwords.hash(changes.pop("password"))

        user = await self.users.update(ctx.user_id, changes)
        await emit(
            self.hooks,
            USER_UPDATED,
            {"user_id": str(user.id), "fields": sorted(_client_fields(changes))},
        )
        return self.to_read(user)

    async def delete_account(self) -> None:
        """Delete the principal, its sessions, tasks and avatar files."""
        ctx = self._require_context()
        avatar = ctx.principal.avatar_paths
        await self.users.delete(ctx.user_id)
        await self._delete_avatar_files(avatar)

        logger.info("user.deleted", user_id=str(ctx.user_id))
        await emit(self.hooks, USER_DELETED, {"user_id": str(ctx.user_id)})

    # ─── Avatar ──────────────────────────────────────────

    async def upload_avatar(self, data: Optional[bytes]) -> UserRead:
        """Store a new avatar, or reset to the default when data is None."""
        ctx = self._require_context()
        if not data:
            user = await self.users.update_avatar(ctx.user_id, DEFAULT_AVATAR)
            return self.to_read(user)

        renditions = await asyncio.to_thread(self.images.process, data)
        paths = {}
        for kind, content in renditions.items():
            key = avatar_key(ctx.user_id, kind)
            await self.storage.upload(key, content, "image/jpeg")
            paths[kind] = key

        user = await self.users.update_avatar(ctx.user_id, paths)
        await emit(self.hooks, USER_AVATAR_UPDATED, {"user_id": str(ctx.user_id)})
        return self.to_read(user)

    async def delete_avatar(self) -> UserRead:
        """Remove the avatar files and reset to the default."""
        ctx = self._require_context()
        avatar = ctx.principal.avatar_paths
        if avatar["original"] == NO_AVATAR:
            return self.to_read(ctx.principal)

        await self._delete_avatar_files(avatar)
        user = await self.users.update_avatar(ctx.user_id, DEFAULT_AVATAR)
        await emit(self.hooks, USER_AVATAR_DELETED, {"user_id": str(ctx.user_id)})
        return self.to_read(user)

    async def get_avatar_urls(self, user_id: uuid.UUID) -> AvatarPaths:
        """Public avatar lookup for any user."""
        user = await self.users.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User")
        return self._avatar_urls(user)

    # ─── Helpers ─────────────────────────────────────────

    def to_read(self, user: User) -> UserRead:
        """Public view of a user: no password hash, no sessions."""
        return UserRead(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            avatar=self._avatar_urls(user),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _avatar_urls(self, user: User) -> AvatarPaths:
        return AvatarPaths(
            **{
                kind: path if path == NO_AVATAR else self.storage.url(path)
                for kind, path in user.avatar_paths.items()
            }
        )

    async def _delete_avatar_files(self, avatar: dict[str, str]) -> None:
        for path in avatar.values():
            if path != NO_AVATAR:
                await self.storage.delete(path)

    def _require_context(self) -> RequestContext:
        if self.context is None:
            raise AuthenticationError()
        return self.context


def _client_fields(changes: dict) -> set[str]:
    # Field names as the client sent them (password, not password_hash).
    return {"password" if key == "password_hash" else key for key in changes}
