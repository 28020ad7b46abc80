"""Input coercion shared by services.

Learn: Services accept either a schema instance (what FastAPI hands them)
or a plain mapping (scripts, tests, other services). Mappings are
validated into the schema here, and pydantic's error becomes our
ValidationError, so an unknown key like "_id" is rejected before any
store call no matter how the service is invoked.
"""

from collections.abc import Mapping
from typing import TypeVar

import pydantic

from tasktrack.errors import ValidationError

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def validate_input(model: type[ModelT], data) -> ModelT:
    """Coerce data into model or raise ValidationError."""
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ValidationError()
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as e:
        raise ValidationError(describe_errors(e.errors())) from e


def describe_errors(errors) -> str:
    """One-line summary of the first validation error."""
    if not errors:
        return ValidationError.default_message
    err = errors[0]
    field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return f"{field}: {err['msg']}" if field else err["msg"]


def update_fields(model: type[pydantic.BaseModel], data) -> dict:
    """The fields a partial update actually sets.

    Only keys present in the input count; an explicit null is rejected
    rather than dropped, and so is an update that sets nothing.
    """
    changes = validate_input(model, data).model_dump(exclude_unset=True)
    nulls = sorted(key for key, value in changes.items() if value is None)
    if nulls:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulls)}")
    if not changes:
        raise ValidationError("No updates provided.")
    return changes
