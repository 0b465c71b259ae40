from __future__ import annotations

import logging
from typing import Any

import httpx

from eformmaker.api_client import FormsApiClient
from eformmaker.errors import ApiError, ValidationError, error_message
from eformmaker.schema import validate_fields
from eformmaker.state import FormState

logger = logging.getLogger(__name__)


class FormBuilder:
    """Saves the editor state as a form, with the checks done before a save."""

    def __init__(self, state: FormState, client: FormsApiClient) -> None:
        self.state = state
        self.client = client

    async def check_title(self, title: str | None = None) -> bool:
        candidate = (self.state.title if title is None else title).strip()
        if not candidate:
            return True
        try:
            result = await self.client.check_title_unique(candidate, self.state.id)
        except httpx.HTTPError:
            logger.warning("Title check failed; treating %r as unique", candidate, exc_info=True)
            return True
        body = result.body if isinstance(result.body, dict) else {}
        return bool(body.get("unique"))

    async def save(self) -> dict[str, Any]:
        title = self.state.title.strip()
        if not title:
            raise ValidationError(["Form must have a title before saving."])

        if not self.state.id:
            try:
                result = await self.client.check_title_unique(title)
            except httpx.HTTPError:
                logger.warning("Title check failed before save", exc_info=True)
            else:
                body = result.body if isinstance(result.body, dict) else {}
                if not body.get("unique"):
                    raise ValidationError(["Form name already exists. Choose another."])

        fields, errors = validate_fields(self.state.fields)
        if errors:
            raise ValidationError(errors)

        payload: dict[str, Any] = {
            "title": title,
            "fields": fields,
            "categoryId": self.state.category,
        }
        if self.state.id:
            payload["id"] = self.state.id

        result = await self.client.save_form(payload)
        if not result.ok:
            raise ApiError(
                error_message(result.body, "Failed to save form."), result.status_code, result.body
            )
        body = result.body if isinstance(result.body, dict) else {}
        form = body.get("form") or body
        new_id = form.get("id") if isinstance(form, dict) else None
        if new_id:
            self.state.id = new_id
            self.state.persist()
        self.state.clear_dirty()
        logger.info("Saved form %s with %d fields", self.state.id, len(fields))
        return form
