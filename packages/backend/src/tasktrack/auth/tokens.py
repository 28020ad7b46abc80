"""Session token signing and verification.

Learn: A session token is a JWT whose only authorization claim is the
subject (the user id). Signature validity is necessary but NOT sufficient:
the token must also still be present in the user's session list, which is
checked by auth/sessions.py. That is what lets logout revoke a token that
is still cryptographically valid.

iat and jti are standard claims added so every issued token is a distinct
string, even two logins in the same second. Neither is enforced on decode.
"""

import uuid
from datetime import datetime, timezone

import jwt


class TokenError(Exception):
    """Raised when a token can't be decoded (bad signature, malformed, no subject)."""


class TokenIssuer:
    """Signs and verifies session tokens with a shared secret. Stateless."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def issue(self, user_id: uuid.UUID | str) -> str:
        """Create a signed token for a user."""
        payload = {
            "sub": str(user_id),
            "iat": datetime.now(timezone.utc),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Verify and decode a token.

        Returns the payload dict on success.
        Raises TokenError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub"], "verify_exp": False},
            )
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}") from e
        if not isinstance(payload.get("sub"), str):
            raise TokenError("Invalid token: subject must be a string")
        return payload
