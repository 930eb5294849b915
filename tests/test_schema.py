import json

from yantra.tools.schema import Prop, SchemaType, schema


def test_round_trip():
    s = schema(
        Prop(name="path", type=SchemaType.STRING, description="File path", required=True),
        Prop(name="limit", type=SchemaType.INTEGER, description="Max lines"),
    )
    parsed = json.loads(json.dumps(s))
    assert parsed["type"] == "object"
    assert parsed["properties"]["path"] == {"type": "string", "description": "File path"}
    assert parsed["properties"]["limit"]["type"] == "integer"
    assert parsed["additionalProperties"] is False


def test_required_fields():
    s = schema(
        Prop(name="a", type=SchemaType.STRING, description="required field", required=True),
        Prop(name="b", type=SchemaType.STRING, description="optional field"),
        Prop(name="c", type=SchemaType.BOOLEAN, description="also required", required=True),
    )
    assert s["required"] == ["a", "c"]


def test_array_type():
    s = schema(Prop(name="tags", type=SchemaType.ARRAY, description="tag list", items=SchemaType.STRING))
    tags = s["properties"]["tags"]
    assert tags["type"] == "array"
    assert tags["items"] == {"type": "string"}


def test_items_ignored_for_non_array():
    s = schema(Prop(name="x", type=SchemaType.STRING, items=SchemaType.STRING))
    assert "items" not in s["properties"]["x"]


def test_no_required():
    s = schema(Prop(name="x", type=SchemaType.STRING, description="optional"))
    assert "required" not in s


def test_enum():
    s = schema(Prop(name="method", type=SchemaType.STRING, enum=["GET", "POST"]))
    assert s["properties"]["method"]["enum"] == ["GET", "POST"]


def test_empty_schema():
    assert schema() == {"type": "object", "properties": {}, "additionalProperties": False}