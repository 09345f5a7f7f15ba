"""Shared pydantic building blocks for snapshot records.

Records arrive from a document store, an ORM or plain dicts. Identifiers are
normalised to stripped strings and timestamps to calendar dates here, once,
so the engine can compare both with ``==``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def normalize_identifier(value: Any) -> Any:
    """``ObjectId``/UUID/int/``{"$oid": ...}`` → canonical ``str``."""
    if value is None:
        return None
    if isinstance(value, dict) and "$oid" in value:
        value = value["$oid"]
    return str(value).strip()


def coerce_calendar_date(value: Any) -> Any:
    """Drop the time part of datetimes and ISO timestamps."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


Identifier = Annotated[str, BeforeValidator(normalize_identifier)]
CalendarDate = Annotated[date, BeforeValidator(coerce_calendar_date)]


class SnapshotModel(BaseModel):
    """Base for input records; accepts camelCase storage keys or field names."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
