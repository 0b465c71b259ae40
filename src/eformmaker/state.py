from __future__ import annotations

import copy
import logging
from typing import Any

from eformmaker.dnd import Card, Container, DragSession
from eformmaker.fields import needs_options, new_field
from eformmaker.local_store import LocalStore
from eformmaker.utils import to_safe_identifier

logger = logging.getLogger(__name__)


class FormState:
    """Mutable state of one editing page: title, ordered fields, selection."""

    def __init__(
        self,
        form_id: str | None = None,
        title: str = "",
        category: Any = None,
        fields: list[dict[str, Any]] | None = None,
        store: LocalStore | None = None,
    ) -> None:
        self.id = form_id
        self.title = title
        self.category = category
        self.fields: list[dict[str, Any]] = list(fields or [])
        self.selected_id: str | None = None
        self.is_dirty = False
        self.preview = Container()
        self.drag: DragSession | None = None
        self._store = store
        self._bootstrapped = False
        self.render_preview()

    def bootstrap(self) -> None:
        self.restore()
        self.render_preview()
        if self.fields:
            self.select(self.fields[-1]["id"])
        self._bootstrapped = True

    def restore(self) -> None:
        if self._store is None:
            return
        data = self._store.read(self.id)
        if not data:
            return
        if data.get("id"):
            self.id = data["id"]
        if isinstance(data.get("fields"), list):
            self.fields = data["fields"]
        if data.get("title"):
            self.title = data["title"]
        if data.get("category") is not None:
            self.category = data["category"]
        logger.debug("Restored %d fields from local draft", len(self.fields))

    def persist(self) -> None:
        if self._store is None:
            return
        self._store.write(
            {
                "id": self.id,
                "title": self.title,
                "fields": self.fields,
                "category": self.category,
            },
            self.id,
        )

    def set_dirty(self) -> None:
        if self._bootstrapped:
            self.is_dirty = True

    def clear_dirty(self) -> None:
        self.is_dirty = False

    def set_title(self, title: str) -> None:
        self.title = title
        self.persist()

    def set_category(self, category: Any) -> None:
        self.category = category
        self.persist()
        self.set_dirty()

    def find_field(self, field_id: str | None) -> dict[str, Any] | None:
        for field in self.fields:
            if field["id"] == field_id:
                return field
        return None

    def index_of(self, field_id: str | None) -> int:
        for index, field in enumerate(self.fields):
            if field["id"] == field_id:
                return index
        return -1

    def add_field(self, field_type: Any) -> dict[str, Any]:
        field = new_field(field_type)
        self.fields.append(field)
        self.persist()
        self.set_dirty()
        self.render_preview()
        self.select(field["id"])
        return field

    def select(self, field_id: str | None) -> dict[str, Any] | None:
        field = self.find_field(field_id)
        self.selected_id = field_id if field else self.selected_id
        return field

    def update_field(self, field_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
        field = self.find_field(field_id)
        if field is None:
            return None
        if "label" in changes:
            field["label"] = str(changes["label"] or "")
            if field.get("autoName", False):
                field["name"] = to_safe_identifier(field["label"])
        if "name" in changes:
            name = str(changes["name"] or "")
            if name:
                field["autoName"] = False
                field["name"] = name
        if "placeholder" in changes:
            field["placeholder"] = str(changes["placeholder"] or "")
        if "options" in changes and needs_options(field.get("type")):
            field["options"] = changes["options"] or ""
        if "required" in changes:
            field["required"] = bool(changes["required"])
        if "doNotStore" in changes:
            field["doNotStore"] = bool(changes["doNotStore"])
        self.persist()
        self.set_dirty()
        return field

    def delete_selected(self) -> None:
        index = self.index_of(self.selected_id)
        if index < 0:
            return
        del self.fields[index]
        self.persist()
        self.set_dirty()
        self.render_preview()
        if self.fields:
            self.select(self.fields[min(index, len(self.fields) - 1)]["id"])
        else:
            self.selected_id = None

    def render_preview(self) -> None:
        self.preview.clear()
        for index, field in enumerate(self.fields):
            self.preview.append(Card(field["id"], index))

    def start_drag(self, index: int) -> DragSession | None:
        if self.drag is not None:
            self.drag.end()
            self.drag = None
        if not 0 <= index < len(self.fields):
            return None
        self.drag = DragSession(index, self.fields[index]["id"])
        return self.drag

    def _card_at(self, index: int | None) -> Card | None:
        if index is None:
            return None
        cards = self.preview.cards()
        return cards[index] if 0 <= index < len(cards) else None

    def drag_over(self, index: int, before: bool = True) -> None:
        if self.drag is None:
            return
        self.drag.drag_over(self._card_at(index), before)

    def drop(self, index: int | None = None, before: bool = True) -> bool:
        session = self.drag
        if session is None:
            return False
        moved = session.drop(self.preview, self.fields, self._card_at(index), before)
        if moved is self.fields:
            return False
        self.fields = moved
        self.persist()
        self.set_dirty()
        self.render_preview()
        self.select(session.field_id)
        return True

    def end_drag(self) -> None:
        if self.drag is not None:
            self.drag.end()
            self.drag = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "fields": copy.deepcopy(self.fields),
            "category": self.category,
        }

