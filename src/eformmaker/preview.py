from __future__ import annotations

from typing import Any

import markupsafe
from jinja2 import Environment, FileSystemLoader, select_autoescape

from eformmaker.config import BASE_DIR
from eformmaker.dnd import PLACEHOLDER_CLASS
from eformmaker.fields import parse_options, partial_for
from eformmaker.utils import dumps_json


def _tojson_attr(value: Any) -> markupsafe.Markup:
    """Escape a JSON dump so it can sit inside an HTML attribute."""
    return markupsafe.Markup(markupsafe.escape(dumps_json(value)))


def create_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(BASE_DIR / "templates")),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["tojson_attr"] = _tojson_attr
    env.globals["placeholder_class"] = PLACEHOLDER_CLASS
    return env


_ENV = create_environment()


def field_context(field: dict[str, Any], idx: int) -> dict[str, Any]:
    return {
        "name": field.get("name") or field.get("id") or f"f_{idx}",
        "label": field.get("label") or "",
        "required": bool(field.get("required")),
        "placeholder": field.get("placeholder") or "",
        "options": parse_options(field.get("options")),
    }


def render_field_html(field: dict[str, Any], idx: int) -> str:
    template = _ENV.get_template(f"fields/{partial_for(field.get('type'))}.html")
    return template.render(**field_context(field, idx))


def render_preview(fields: list[dict[str, Any]]) -> str:
    cards = [
        {
            "field": field,
            "index": idx,
            "body": markupsafe.Markup(render_field_html(field, idx)),
        }
        for idx, field in enumerate(fields)
    ]
    return _ENV.get_template("preview.html").render(cards=cards)
