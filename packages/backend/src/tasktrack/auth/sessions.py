"""Session verification — the authentication decision point.

Learn: A bearer token is accepted only if BOTH checks pass:
1. its signature verifies under the shared secret (TokenIssuer.decode)
2. it is still in the subject's active-session list (UserStore.get_by_session)

The second check is a single combined query (user id AND token), so a
token that was logged out is rejected the same way as a forged one. Every
failure raises the same AuthenticationError; callers can't distinguish a
bad signature from an unknown user or a revoked session.
"""

import uuid
from dataclasses import dataclass

from tasktrack.auth.tokens import TokenError, TokenIssuer
from tasktrack.db.models import User
from tasktrack.errors import AuthenticationError
from tasktrack.store.users import UserStore


@dataclass(frozen=True)
class RequestContext:
    """The authenticated principal for one request.

    Loaded once by the auth dependency and never refreshed for the rest of
    the request, even if the store changes underneath it.
    """

    principal: User
    token: str

    @property
    def user_id(self) -> uuid.UUID:
        return self.principal.id


class SessionVerifier:
    """Turns a raw bearer token into the principal it belongs to."""

    def __init__(self, users: UserStore, tokens: TokenIssuer):
        self.users = users
        self.tokens = tokens

    async def verify(self, token: str) -> User:
        """Return the principal for token, or raise AuthenticationError."""
        if not token:
            raise AuthenticationError()

        try:
            payload = self.tokens.decode(token)
            user_id = uuid.UUID(payload["sub"])
        except (TokenError, ValueError):
            raise AuthenticationError() from None

        user = await self.users.get_by_session(user_id, token)
        if user is None:
            raise AuthenticationError()
        # Later store writes in this request load their own copy.
        self.users.detach(user)
        return user

    async def authenticate(self, token: str) -> RequestContext:
        """Verify token and wrap the principal in a request context."""
        user = await self.verify(token)
        return RequestContext(principal=user, token=token)
