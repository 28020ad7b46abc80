"""User store — principal records and their active-session lists.

Learn: The session list is the revocation mechanism. Three list-level
operations mutate it:

  add_session         INSERT one row   (sign-up, login)
  remove_session      DELETE one row   (logout on one device)
  remove_all_sessions DELETE all rows  (logout everywhere)

Each is a single statement on user_sessions, never a read-modify-write of
the whole list, so a logout racing a login on another device can lose at
most that one concurrent change.

get_by_session is the lookup the session verifier relies on: user id AND
session membership in ONE query. A token that was removed from the list
matches nothing, exactly like a token that never existed.
"""

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrack.db.models import Task, User, UserSession
from tasktrack.errors import ResourceNotFoundError, ValidationError

# Columns a profile update may touch. The service layer narrows this further
# (clients send "password", the service turns it into password_hash).
UPDATABLE_COLUMNS = frozenset({"name", "email", "password_hash", "age"})


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    """CRUD for users plus the embedded session list."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create(
        self,
        name: str,
        email: str,
        password_hash: str,
        age: int = 0,
    ) -> User:
        """Insert a new user with an empty session list."""
        user = User(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            age=age,
        )
        self.db.add(user)
        await self._commit("Email is already registered.")
        return await self._require(user.id)

    # ─── Read ────────────────────────────────────────────

    async def get(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .where(User.email == normalize_email(email))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get_by_session(self, user_id: uuid.UUID, token: str) -> Optional[User]:
        """Load the user whose id matches AND whose session list holds token."""
        result = await self.db.execute(
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(User.id == user_id, UserSession.token == token)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    # ─── Sessions ────────────────────────────────────────

    async def add_session(self, user_id: uuid.UUID, token: str) -> User:
        """Append token to the user's session list.

        Adding a token the user already holds is a no-op, so the list never
        contains duplicates.
        """
        await self._require(user_id)
        existing = await self.db.scalar(
            select(UserSession.id).where(
                UserSession.user_id == user_id, UserSession.token == token
            )
        )
        if existing is None:
            self.db.add(UserSession(user_id=user_id, token=token))
            await self._commit()
        return await self._require(user_id)

    async def remove_session(self, user_id: uuid.UUID, token: str) -> User:
        """Remove token from the user's session list."""
        await self._require(user_id)
        await self.db.execute(
            delete(UserSession).where(
                UserSession.user_id == user_id, UserSession.token == token
            )
        )
        await self._commit()
        return await self._require(user_id)

    async def remove_all_sessions(self, user_id: uuid.UUID) -> User:
        """Clear the user's session list."""
        await self._require(user_id)
        await self.db.execute(
            delete(UserSession).where(UserSession.user_id == user_id)
        )
        await self._commit()
        return await self._require(user_id)

    # ─── Update ──────────────────────────────────────────

    async def update(self, user_id: uuid.UUID, changes: dict) -> User:
        """Apply column changes to a user. Unknown columns are rejected."""
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}"
            )

        user = await self._require(user_id)
        for column, value in changes.items():
            if column == "email":
                value = normalize_email(value)
            elif column == "name":
                value = value.strip()
            setattr(user, column, value)

        await self._commit("Email is already registered.")
        return await self._require(user_id)

    async def update_avatar(self, user_id: uuid.UUID, paths: dict[str, str]) -> User:
        """Replace the three avatar references (original, small, large)."""
        user = await self._require(user_id)
        user.avatar_original = paths["original"]
        user.avatar_small = paths["small"]
        user.avatar_large = paths["large"]
        await self._commit()
        return await self._require(user_id)

    # ─── Delete ──────────────────────────────────────────

    async def delete(self, user_id: uuid.UUID) -> User:
        """Delete a user together with its sessions and tasks, in one commit."""
        user = await self._require(user_id)
        await self.db.execute(delete(Task).where(Task.owner_id == user_id))
        await self.db.delete(user)
        await self._commit()
        return user

    # ─── Helpers ─────────────────────────────────────────

    def detach(self, user: User) -> None:
        """Remove user (and its sessions) from the unit of work.

        The detached instance keeps its loaded values and is no longer
        touched by later loads or writes in the same database session.
        """
        self.db.expunge(user)

    async def _require(self, user_id: uuid.UUID) -> User:
        user = await self.get(user_id)
        if user is None:
            raise ResourceNotFoundError("User")
        return user

    async def _commit(self, conflict_message: Optional[str] = None) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ValidationError(conflict_message) from e
