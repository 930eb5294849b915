"""Builder for the JSON Schema objects that describe tool parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SchemaType(StrEnum):
    """A JSON Schema primitive type."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


@dataclass
class Prop:
    """One property of a schema object.

    ``items`` is only used for arrays; ``enum`` restricts the allowed values.
    """

    name: str
    type: SchemaType
    description: str = ""
    required: bool = False
    items: SchemaType | None = None
    enum: list[str] = field(default_factory=list)


def schema(*props: Prop) -> dict[str, Any]:
    """Build a JSON Schema "object" from property descriptions."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for prop in props:
        entry: dict[str, Any] = {"type": str(prop.type), "description": prop.description}
        if prop.type == SchemaType.ARRAY and prop.items is not None:
            entry["items"] = {"type": str(prop.items)}
        if prop.enum:
            entry["enum"] = list(prop.enum)
        properties[prop.name] = entry
        if prop.required:
            required.append(prop.name)

    result: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    if required:
        result["required"] = required
    return result