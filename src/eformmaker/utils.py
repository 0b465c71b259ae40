from __future__ import annotations

import random
import re
import secrets
import string
from datetime import datetime, timezone
from typing import Any

import orjson

FIELD_ID_PREFIX = "fld_"
FIELD_ID_SUFFIX_LENGTH = 12

_ID_ALPHABET = string.ascii_lowercase + string.digits
_SEPARATORS = re.compile(r"[\s\-]+")
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def parse_dt(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def dumps_json(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def loads_json(value: str | bytes | None) -> Any:
    if not value:
        return None
    return orjson.loads(value)


def _random_suffix(length: int) -> str:
    try:
        return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))
    except NotImplementedError:
        # no OS entropy source
        return "".join(random.choice(_ID_ALPHABET) for _ in range(length))


def generate_field_id() -> str:
    return FIELD_ID_PREFIX + _random_suffix(FIELD_ID_SUFFIX_LENGTH)


def to_safe_identifier(value: Any) -> str:
    """Normalize free text into a lowercase snake_case identifier.

    Applying it to its own output returns the same string.
    """
    text = str(value or "").strip()
    text = _SEPARATORS.sub("_", text)
    text = _UNSAFE_CHARS.sub("", text)
    text = _UNDERSCORE_RUNS.sub("_", text)
    return text.strip("_").lower()


def to_safe_upper_identifier(value: Any) -> str:
    return to_safe_identifier(value).upper()
