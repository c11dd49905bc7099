import json

from messageflow.compiler.normalize import format_description, normalize_payload, type_tag


class TestTypeTag:
    def test_scalars(self):
        assert type_tag({"type": "integer"}) == "integer"
        assert type_tag({"type": "string", "format": "date-time"}) == "string[date-time]"
        assert type_tag({"type": "string", "enum": ["a", "b"]}) == "string[enum:a,b]"
        assert type_tag({"type": "boolean", "enum": [True]}) == "boolean[enum:true]"

    def test_missing_type_is_string(self):
        assert type_tag({}) == "string"
        assert type_tag(None) == "string"
        assert type_tag({"description": "no type"}) == "string"

    def test_objects_and_arrays(self):
        schema = {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "items": {"type": "string"}},
                "meta": {"type": "object"},
                "owner": {"properties": {"id": {"type": "integer"}}},
            },
        }

        assert type_tag(schema) == {
            "tags": ["string"],
            "meta": "object",
            "owner": {"id": "integer"},
        }


class TestNormalizePayload:
    def test_absent_payload(self):
        assert normalize_payload(None) == ""

    def test_sorted_and_indented(self):
        text = normalize_payload({
            "type": "object",
            "properties": {"b": {"type": "string"}, "a": {"type": "integer"}},
        })

        assert text == '{\n  "a": "integer",\n  "b": "string"\n}'
        assert json.loads(text) == {"a": "integer", "b": "string"}

    def test_deterministic(self):
        schema = {"type": "object", "properties": {"x": {"type": "number"}}}

        assert normalize_payload(schema) == normalize_payload(dict(schema))


class TestFormatDescription:
    def test_short_text_unchanged(self):
        assert format_description("Manages users") == "Manages users"
        assert format_description("") == ""

    def test_long_text_wrapped_every_seven_words(self):
        text = "one two three four five six seven eight nine"

        assert format_description(text) == "one two three four five six seven  \neight nine"
