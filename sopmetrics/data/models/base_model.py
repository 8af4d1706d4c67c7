"""
Base model classes for store row representation.

Contains the shared configuration for all entity models (frozen, accepting
both the stored snake_case column names and their camelCase spellings) and
the annotated field types that normalize identifiers and timestamps coming
out of the store.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from sopmetrics.utils.safe_ops import safe_parse_datetime


def _coerce_id(value: Any) -> str:
    """Store identifiers may be UUID strings or integer keys."""
    if value is None or isinstance(value, bool):
        raise ValueError("identifier is required")
    text = str(value).strip()
    if not text:
        raise ValueError("identifier is required")
    return text


# Identifier normalized to a non-empty string
EntityId = Annotated[str, BeforeValidator(_coerce_id)]

# Timestamp normalized to an aware UTC datetime
UtcDatetime = Annotated[datetime, BeforeValidator(safe_parse_datetime)]


class EntityModel(BaseModel):
    """Base class for entities read from the store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ResultModel(BaseModel):
    """Base class for derived, JSON-serializable results."""

    model_config = ConfigDict(frozen=True)
