"""Password hashing.

Learn: Uses bcrypt for password hashing. bcrypt automatically handles
salting and is resistant to rainbow table attacks. The work factor is
configurable (TASKTRACK_BCRYPT_ROUNDS); every extra round doubles the cost
of a hash. Tests run with the minimum (4) to stay fast.
"""

import bcrypt


class PasswordHasher:
    """Hashes and checks passwords. Stateless apart from the work factor."""

    def __init__(self, rounds: int = 8):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with bcrypt.

        Passwords are truncated to 72 bytes (bcrypt's limit).
        """
        pw_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against its hash.

        A malformed hash is reported as a mismatch, never as an error, so
        callers can't learn anything about the stored format.
        """
        try:
            pw_bytes = password.encode("utf-8")[:72]
            hash_bytes = password_hash.encode("utf-8")
            return bcrypt.checkpw(pw_bytes, hash_bytes)
        except (ValueError, TypeError, AttributeError):
            return False
