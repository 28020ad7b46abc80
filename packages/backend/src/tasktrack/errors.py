"""Application error taxonomy.

Learn: Services and stores raise these and never translate them to HTTP.
The routing boundary (api/errors.py) is the only place that maps an error
to a status code, so the same service can be reused from a CLI or a test
without dragging FastAPI along.

Anything that is not an AppError is an unexpected infrastructure failure
and becomes a generic 500 at the boundary.
"""

from typing import Optional


class AppError(Exception):
    """Base class for every error the API reports to clients."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(AppError):
    """Missing, invalid or revoked token, or a credential mismatch.

    Every sub-case carries the same message so callers can't tell a bad
    signature from an unknown user or a logged-out session.
    """

    status_code = 401
    default_message = "Please authenticate."


class ValidationError(AppError):
    """Malformed input, a disallowed update field, or a rejected write."""

    status_code = 400
    default_message = (
        "A field is missing or invalid, or the updates are not allowed."
    )


class ResourceNotFoundError(AppError):
    """Nonexistent resource — or one owned by somebody else."""

    status_code = 404
    default_message = "Resource not found."

    def __init__(self, resource: Optional[str] = None):
        super().__init__(
            f'Resource "{resource}" was not found.' if resource else None
        )


class ImageProcessingError(AppError):
    status_code = 500
    default_message = "Could not process image."
