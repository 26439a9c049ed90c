"""
Base models and utilities for Pydantic v2.
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel as PydanticBaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseModel(PydanticBaseModel):
    """Base model for records read from the document store.

    Store documents use camelCase keys (``listingId``, ``serviceFee``); the
    models accept those as well as snake_case field names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_document(cls, data: Optional[dict]):
        """Build a record from a raw store document, or None for empty input."""
        if not data:
            return None
        return cls.model_validate(data)


def zero_if_missing(value: Any) -> Any:
    """Best-effort metric policy: absent numbers count as zero."""
    if value is None or value == "":
        return 0
    return value


def as_naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Normalize aware timestamps to naive UTC so windows compare cleanly."""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
