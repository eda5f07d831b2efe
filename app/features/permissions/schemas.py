"""
Pydantic schemas for feature permissions.

PermissionWrite is the write-body schema: strict types, so JSON strings such
as "true" are rejected for the flag instead of being coerced.
"""
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator

from app.features.permissions.validators import validate_email


class PermissionWrite(BaseModel):
    """Body of POST /feature."""
    feature_name: StrictStr = Field(..., validation_alias=AliasChoices("featureName", "feature_name"))
    email: StrictStr
    enabled: StrictBool = Field(..., validation_alias=AliasChoices("enable", "enabled"))

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        """Apply the same email rule as the query parameters."""
        if not validate_email(v):
            raise ValueError("email is not in the correct format")
        return v


class PermissionAccessResponse(BaseModel):
    """Body of a successful GET /feature."""
    can_access: bool = Field(..., alias="canAccess")

    model_config = ConfigDict(populate_by_name=True)
