import json
from typing import Any, Optional

DESCRIPTION_WORDS_PER_LINE = 7

# -------------------------
# Display text
# -------------------------

def format_description(description: str) -> str:
    """
    Reflow a description into lines of seven words.
    Lines are joined with a markdown hard break ("  \\n").
    """
    if not description:
        return ""

    words = description.split()
    if len(words) <= DESCRIPTION_WORDS_PER_LINE:
        return description

    lines = [
        " ".join(words[i:i + DESCRIPTION_WORDS_PER_LINE])
        for i in range(0, len(words), DESCRIPTION_WORDS_PER_LINE)
    ]
    return "  \n".join(lines)


# -------------------------
# Payload fingerprint
# -------------------------

def type_tag(schema: Optional[dict]) -> Any:
    """
    Structural tag of a JSON-schema-like node.

    Scalars become "type", "type[format]" or "type[enum:a,b]"; objects become
    maps of their property tags; arrays become a one-element list of the item tag.
    """
    if not schema:
        return "string"

    kind = schema.get("type", "")

    if kind == "array":
        items = schema.get("items")
        if not items:
            return []
        return [type_tag(items)]

    if kind == "object" or (not kind and schema.get("properties")):
        properties = schema.get("properties") or {}
        if not properties:
            return "object"
        return {name: type_tag(prop) for name, prop in properties.items()}

    if kind:
        if schema.get("format"):
            return f"{kind}[{schema['format']}]"
        if schema.get("enum"):
            values = ",".join(_enum_text(v) for v in schema["enum"])
            return f"{kind}[enum:{values}]"
        return kind

    return "string"


def _enum_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_payload(schema: Optional[dict]) -> str:
    """Deterministic text form of a message payload schema ("" when absent)."""
    if schema is None:
        return ""

    properties = schema.get("properties") or {}
    fingerprint = {name: type_tag(prop) for name, prop in properties.items()}

    return json.dumps(fingerprint, indent=2, sort_keys=True)
