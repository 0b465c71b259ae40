from __future__ import annotations

from typing import Any

import orjson
from jsonschema import Draft7Validator

from eformmaker.fields import (
    FieldType,
    clean_field,
    coerce_field_type,
    has_valid_options,
)
from eformmaker.utils import to_safe_identifier

TEXT_KEYS = ("label", "placeholder", "name")

FIELD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["id", "type"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "type": {"type": "string"},
        "label": {"type": "string"},
        "options": {"type": ["string", "array"]},
        "value": {"type": ["string", "number", "boolean", "null"]},
        "placeholder": {"type": "string"},
        "name": {"type": "string"},
        "required": {"type": "boolean"},
        "doNotStore": {"type": "boolean"},
        "autoName": {"type": "boolean"},
    },
}

_FIELD_VALIDATOR = Draft7Validator(FIELD_SCHEMA)


def validate_fields(raw_fields: Any) -> tuple[list[dict[str, Any]], list[str]]:
    """Check a field list before it is sent to the server.

    Returns the cleaned fields (persisted keys only) and a list of messages;
    the list is empty when the fields can be saved.
    """
    errors: list[str] = []
    if not isinstance(raw_fields, list):
        return [], ["Fields must be a list"]

    seen_ids: set[str] = set()
    seen_names: set[str] = set()
    fields: list[dict[str, Any]] = []
    for index, raw in enumerate(raw_fields, start=1):
        loc = f"Field {index}"
        if not isinstance(raw, dict):
            errors.append(f"{loc}: must be an object")
            continue
        # null text keys count as empty
        raw = {**raw, **{key: "" for key in TEXT_KEYS if key in raw and raw[key] is None}}
        shape_errors = sorted(_FIELD_VALIDATOR.iter_errors(raw), key=lambda e: list(e.path))
        for error in shape_errors:
            where = ".".join(str(part) for part in error.path)
            errors.append(f"{loc}: {where + ' ' if where else ''}{error.message}")
        if shape_errors:
            continue

        field_id = raw["id"]
        if field_id in seen_ids:
            errors.append(f"{loc}: duplicate id ({field_id})")
        seen_ids.add(field_id)

        if coerce_field_type(raw["type"]) is None:
            errors.append(f"{loc}: unknown field type ({raw['type']})")

        label = str(raw.get("label", "")).strip()
        if not label:
            errors.append(f"{loc}: each field must have a Display Label")

        name = str(raw.get("name", "")).strip()
        if not name and raw.get("autoName"):
            name = to_safe_identifier(label)
        if not name:
            errors.append(f"{loc}: each field must have an Internal Field Name")
        elif name in seen_names:
            errors.append(f"{loc}: duplicate field name ({name})")
        else:
            seen_names.add(name)

        if not has_valid_options(raw):
            errors.append(f"{loc}: this field needs options (comma-separated)")

        fields.append(clean_field({**raw, "label": label, "name": name}))

    return fields, errors


def parse_fields_json(fields_json: str) -> tuple[list[dict[str, Any]], list[str]]:
    try:
        raw_fields = orjson.loads(fields_json) if fields_json else []
    except orjson.JSONDecodeError:
        return [], ["Could not parse the field definitions"]
    return validate_fields(raw_fields)


def known_field_types() -> list[str]:
    return [member.value for member in FieldType]
