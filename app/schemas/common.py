"""Shared pydantic types."""

from datetime import datetime, timezone
from typing import Annotated, Optional, Type
from uuid import UUID
from pydantic import AfterValidator, BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

def to_naive_utc(value: datetime) -> datetime:
    """Columns store naive UTC; convert aware datetimes on the way in."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value

NaiveDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]

HexColor = Annotated[str, Field(pattern=r"^#[0-9A-Fa-f]{6}$")]

class ImageOut(BaseModel):
    """Stored image reference (Azure Blob)."""
    url: str
    blob_name: Optional[str] = None
    filename: Optional[str] = None
    alt: Optional[str] = None

class ImageIn(BaseModel):
    """Image given by URL (already hosted) instead of uploaded."""
    url: str
    alt: Optional[str] = Field(None, max_length=200)

class SlugGenerate(BaseModel):
    text: str = Field(..., min_length=1, max_length=200)
    exclude_id: Optional[UUID] = None

class InputModel(BaseModel):
    """Request bodies: enum fields arrive as their plain string values."""

    class Config:
        use_enum_values = True
        validate_default = True

def parse_form_json(schema: Type[BaseModel], raw: str):
    """Validate a JSON document sent as a multipart form field.

    Multipart endpoints carry the entity as a ``data`` field next to the
    uploaded files, so FastAPI cannot validate it as a body; errors are
    reported in the same ``{field, message}`` shape as request validation.
    """
    try:
        return schema.model_validate_json(raw)
    except PydanticValidationError as e:
        details = [
            {"field": ".".join(str(part) for part in err["loc"]) or "data", "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Validation failed", details)
