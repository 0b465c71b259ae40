from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple

from eformmaker.utils import generate_field_id


class FieldType(str, Enum):
    SINGLE_LINE = "singleLine"
    PARAGRAPH = "paragraph"
    DROPDOWN = "dropdown"
    MULTIPLE_CHOICE = "multipleChoice"
    CHECKBOXES = "checkboxes"
    NUMBER = "number"
    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    URL = "url"
    FILE = "file"
    RICH_TEXT = "richText"


OPTION_TYPES = frozenset({FieldType.DROPDOWN, FieldType.MULTIPLE_CHOICE, FieldType.CHECKBOXES})

DEFAULT_OPTIONS = "Option 1, Option 2"

CLEAN_KEYS = (
    "id",
    "type",
    "label",
    "options",
    "value",
    "placeholder",
    "name",
    "required",
    "doNotStore",
)

DEFAULT_LABELS: dict[FieldType, str] = {
    FieldType.SINGLE_LINE: "Single Line Text",
    FieldType.PARAGRAPH: "Paragraph Text",
    FieldType.DROPDOWN: "Dropdown",
    FieldType.MULTIPLE_CHOICE: "Multiple Choice",
    FieldType.CHECKBOXES: "Checkboxes",
    FieldType.NUMBER: "Number",
    FieldType.NAME: "Full Name",
    FieldType.EMAIL: "Email",
    FieldType.PHONE: "Phone Number",
    FieldType.DATE: "Date",
    FieldType.TIME: "Time",
    FieldType.DATETIME: "Datetime",
    FieldType.URL: "URL",
    FieldType.FILE: "File Upload",
    FieldType.RICH_TEXT: "Rich Text Editor",
}

DEFAULT_PLACEHOLDERS: dict[FieldType, str] = {
    FieldType.SINGLE_LINE: "Enter text…",
    FieldType.PARAGRAPH: "Type your message…",
    FieldType.DROPDOWN: "Select…",
    FieldType.MULTIPLE_CHOICE: "",
    FieldType.CHECKBOXES: "",
    FieldType.NUMBER: "0",
    FieldType.NAME: "",
    FieldType.EMAIL: "email@example.com",
    FieldType.PHONE: "Phone number",
    FieldType.DATE: "",
    FieldType.TIME: "",
    FieldType.DATETIME: "",
    FieldType.URL: "https://example.com",
    FieldType.FILE: "",
    FieldType.RICH_TEXT: "Type something...",
}

PARTIAL_FOR: dict[FieldType, str] = {
    FieldType.SINGLE_LINE: "text",
    FieldType.PARAGRAPH: "textarea",
    FieldType.DROPDOWN: "select",
    FieldType.MULTIPLE_CHOICE: "radios",
    FieldType.CHECKBOXES: "checkboxes",
    FieldType.NUMBER: "number",
    FieldType.NAME: "name",
    FieldType.EMAIL: "email",
    FieldType.PHONE: "phone",
    FieldType.DATE: "date",
    FieldType.TIME: "time",
    FieldType.DATETIME: "datetime",
    FieldType.URL: "url",
    FieldType.FILE: "file",
    FieldType.RICH_TEXT: "rich-text",
}


def _check_exhaustive() -> None:
    for table_name, table in (
        ("DEFAULT_LABELS", DEFAULT_LABELS),
        ("DEFAULT_PLACEHOLDERS", DEFAULT_PLACEHOLDERS),
        ("PARTIAL_FOR", PARTIAL_FOR),
    ):
        missing = [member.value for member in FieldType if member not in table]
        if missing:
            raise RuntimeError(f"{table_name} is missing field types: {', '.join(missing)}")


_check_exhaustive()


class FieldDefaults(NamedTuple):
    label: str
    placeholder: str
    options: str


def coerce_field_type(value: Any) -> FieldType | None:
    if isinstance(value, FieldType):
        return value
    try:
        return FieldType(str(value))
    except ValueError:
        return None


def defaults_for(field_type: Any) -> FieldDefaults:
    known = coerce_field_type(field_type)
    if known is None:
        return FieldDefaults(label=str(field_type or ""), placeholder="", options="")
    return FieldDefaults(
        label=DEFAULT_LABELS[known],
        placeholder=DEFAULT_PLACEHOLDERS[known],
        options=DEFAULT_OPTIONS if known in OPTION_TYPES else "",
    )


def partial_for(field_type: Any) -> str:
    known = coerce_field_type(field_type)
    return PARTIAL_FOR[known] if known is not None else "text"


def needs_options(field_type: Any) -> bool:
    return coerce_field_type(field_type) in OPTION_TYPES


def parse_options(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value or "").split(",")
    return [item.strip() for item in items if item.strip()]


def has_valid_options(field: dict[str, Any]) -> bool:
    if not needs_options(field.get("type")):
        return True
    return bool(parse_options(field.get("options")))


def new_field(field_type: Any) -> dict[str, Any]:
    defaults = defaults_for(field_type)
    known = coerce_field_type(field_type)
    return {
        "id": generate_field_id(),
        "type": known.value if known is not None else str(field_type or ""),
        "label": defaults.label,
        "options": defaults.options,
        "value": "",
        "placeholder": defaults.placeholder,
        "name": "",
        "required": False,
        "doNotStore": False,
        "autoName": True,
    }


def clean_field(field: dict[str, Any]) -> dict[str, Any]:
    cleaned = {key: field[key] for key in CLEAN_KEYS if field.get(key) is not None}
    if needs_options(cleaned.get("type")):
        options = cleaned.get("options")
        if isinstance(options, (list, tuple)):
            options = ", ".join(str(item) for item in options)
        cleaned["options"] = str(options or "").strip()
    else:
        cleaned.pop("options", None)
    return cleaned
