"""
Helpers for turning incoming payloads into validated schemas and ORM
column values.
"""

from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def coerce(schema: type[SchemaT], value: Any) -> SchemaT | None:
    """Validate a dict (or pass through an instance) against schema."""
    if value is None or isinstance(value, schema):
        return value
    return schema.model_validate(value)


def column_values(model: BaseModel, exclude_unset: bool = False) -> dict[str, Any]:
    """
    Dump a schema into keyword arguments for an ORM model.

    Nested documents use their API aliases (publicId, isMain, zipCode) so
    the JSON columns store the same keys the API returns. Enum members are
    reduced to their values.
    """
    data = model.model_dump(exclude_unset=exclude_unset, by_alias=True)
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in data.items()
    }
