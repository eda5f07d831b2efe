"""
Input validation for feature permission requests.

The email rule is intentionally loose: it only requires "@" and ".com".
"""
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaViolation

from app.core.errors import ValidationError


ModelT = TypeVar("ModelT", bound=BaseModel)

INVALID_EMAIL = "email parameter is not in the correct format"
INVALID_FEATURE_NAME = "featureName needs to contain only string or combination of string with numbers."
INVALID_BOTH = "email and featureName are not in the correct format"


def validate_email(value: str | None) -> bool:
    """True if value is non-empty and contains both "@" and ".com"."""
    return bool(value) and "@" in value and ".com" in value


def validate_feature_name(value: str | None) -> bool:
    """True if value is non-empty and has at least one non-digit character."""
    return bool(value) and not value.isdigit()


def query_params_error(email: str | None, feature_name: str | None) -> str | None:
    """
    Return the user-facing message for invalid GET parameters, or None if both are valid.
    """
    email_ok = validate_email(email)
    feature_ok = validate_feature_name(feature_name)
    if not email_ok and not feature_ok:
        return INVALID_BOTH
    if not email_ok:
        return INVALID_EMAIL
    if not feature_ok:
        return INVALID_FEATURE_NAME
    return None


def validate_body(payload: Any, schema: type[ModelT]) -> ModelT:
    """
    Validate a decoded JSON payload against a schema model.

    Raises:
        ValidationError: the payload violates the schema; the pydantic error is kept as the cause.
    """
    try:
        return schema.model_validate(payload)
    except SchemaViolation as exc:
        raise ValidationError("request body does not match schema", cause=exc) from exc
