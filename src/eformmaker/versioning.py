from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Protocol

from eformmaker.api_client import ApiResult, FormsApiClient
from eformmaker.config import (
    AUTOSAVE_DEBOUNCE,
    AUTOSAVE_INTERVAL,
    AUTOSAVE_TOAST_SECONDS,
    BUILDER_PAGE_PATH,
)
from eformmaker.errors import ApiError, VersioningError, error_message
from eformmaker.utils import dumps_json, parse_dt

logger = logging.getLogger(__name__)


class SaveState(Enum):
    IDLE = "idle"
    SAVING = "saving"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioClock:
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class EditorState(Protocol):
    id: str | None

    def snapshot(self) -> dict[str, Any]: ...


class Notifier(Protocol):
    def show(self, message: str, kind: str = "info", duration: float = 5.0) -> None: ...


class LoggingNotifier:
    _LEVELS = {
        "success": logging.INFO,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "danger": logging.ERROR,
    }

    def show(self, message: str, kind: str = "info", duration: float = 5.0) -> None:
        logger.log(self._LEVELS.get(kind, logging.INFO), "[%s] %s", kind, message)


def _reload_requested() -> None:
    logger.info("Page reload requested")


def _navigation_requested(url: str) -> None:
    logger.info("Navigation requested: %s", url)


def describe_draft(draft: dict[str, Any]) -> str:
    title = draft.get("title") or "(Untitled)"
    saved_at = parse_dt(draft.get("lastSavedAt"))
    if saved_at is None:
        return title
    return f"{title} ({saved_at.date().isoformat()})"


def describe_version(version: dict[str, Any]) -> str:
    label = f"v{version.get('versionNumber')}"
    if version.get("isPublished"):
        label += " [Published]"
    return f"{label} - {version.get('changeDescription') or 'No description'}"


class VersioningController:
    """Auto-save, manual drafts and version transitions for one editing page.

    At most one draft save is in flight at a time. Auto-save requests made
    while a save is running are dropped; manual saves wait for it to finish.
    """

    def __init__(
        self,
        client: FormsApiClient,
        state: EditorState,
        *,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        reload_page: Callable[[], None] | None = None,
        navigate: Callable[[str], None] | None = None,
        autosave_interval: float = AUTOSAVE_INTERVAL,
        debounce_delay: float = AUTOSAVE_DEBOUNCE,
    ) -> None:
        self.client = client
        self.state = state
        self.clock = clock or AsyncioClock()
        self.notifier = notifier or LoggingNotifier()
        self.reload_page = reload_page or _reload_requested
        self.navigate = navigate or _navigation_requested
        self.autosave_interval = autosave_interval
        self.debounce_delay = debounce_delay
        self.save_state = SaveState.IDLE
        self.last_saved_state: dict[str, Any] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._interval_handle: TimerHandle | None = None
        self._debounce_handle: TimerHandle | None = None
        self._tasks: set[asyncio.Future[Any]] = set()

    # scheduling

    def start(self) -> None:
        if self._interval_handle is None:
            self._arm_interval()

    def stop(self) -> None:
        for handle in (self._interval_handle, self._debounce_handle):
            if handle is not None:
                handle.cancel()
        self._interval_handle = None
        self._debounce_handle = None

    async def aclose(self) -> None:
        self.stop()
        await self.flush()

    async def flush(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def notify_input(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self.clock.call_later(self.debounce_delay, self._on_debounce)

    def _arm_interval(self) -> None:
        self._interval_handle = self.clock.call_later(self.autosave_interval, self._on_interval)

    def _on_interval(self) -> None:
        self._arm_interval()
        self._trigger_auto_save()

    def _on_debounce(self) -> None:
        self._debounce_handle = None
        self._trigger_auto_save()

    def _trigger_auto_save(self) -> None:
        if self.save_state is not SaveState.IDLE or not self.has_unsaved_changes():
            return
        task = asyncio.ensure_future(self.auto_save())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # state

    def current_form_state(self) -> dict[str, Any]:
        snapshot = self.state.snapshot()
        return {
            "title": snapshot.get("title"),
            "fields": snapshot.get("fields"),
            "category": snapshot.get("category"),
        }

    def has_unsaved_changes(self) -> bool:
        return dumps_json(self.current_form_state()) != dumps_json(self.last_saved_state)

    def _draft_payload(self, current: dict[str, Any], is_auto_save: bool) -> dict[str, Any]:
        return {
            "formId": self.state.id or None,
            "title": current["title"],
            "fields": current["fields"],
            "categoryId": current["category"],
            "isAutoSave": is_auto_save,
        }

    def _begin_save(self) -> None:
        self.save_state = SaveState.SAVING
        self._idle.clear()

    def _finish_save(self) -> None:
        self.save_state = SaveState.IDLE
        self._idle.set()

    def _require_form_id(self) -> str:
        form_id = self.state.id
        if not form_id:
            raise VersioningError("No form ID available")
        return form_id

    @staticmethod
    def _expect_ok(result: ApiResult, default_error: str) -> Any:
        if not result.ok:
            raise ApiError(error_message(result.body, default_error), result.status_code, result.body)
        return result.body

    def _report_failure(self, action: str, prefix: str, exc: Exception) -> None:
        logger.error("%s error: %s", action, exc)
        self.notifier.show(f"{prefix}: {exc}", "danger")

    # drafts

    async def auto_save(self) -> bool:
        if self.save_state is SaveState.SAVING:
            return False
        self._begin_save()
        try:
            current = self.current_form_state()
            result = await self.client.save_draft(self._draft_payload(current, True))
            if not result.ok:
                logger.warning("Auto-save rejected with status %s", result.status_code)
                return False
            self.last_saved_state = current
            self.notifier.show("Auto-saved", "success", AUTOSAVE_TOAST_SECONDS)
            return True
        except Exception:
            logger.warning("Auto-save failed", exc_info=True)
            return False
        finally:
            self._finish_save()

    async def save_draft(self, manual: bool = False) -> Any:
        while self.save_state is SaveState.SAVING:
            await self._idle.wait()
        self._begin_save()
        try:
            current = self.current_form_state()
            result = await self.client.save_draft(self._draft_payload(current, False))
            body = self._expect_ok(result, "Failed to save draft")
            self.last_saved_state = current
            if manual:
                self.notifier.show("Draft saved successfully", "success")
            return body.get("draft") if isinstance(body, dict) else None
        except Exception as exc:
            self._report_failure("Save draft", "Failed to save draft", exc)
            raise
        finally:
            self._finish_save()

    async def publish_draft(self, draft_id: str) -> dict[str, Any]:
        try:
            result = await self.client.publish_draft(draft_id)
            form = self._expect_ok(result, "Failed to publish draft")["form"]
            self.notifier.show("Draft published successfully", "success")
            self.navigate(BUILDER_PAGE_PATH.format(form_id=form["id"]))
            return form
        except Exception as exc:
            self._report_failure("Publish draft", "Failed to publish draft", exc)
            raise

    async def get_drafts(self) -> list[dict[str, Any]]:
        try:
            result = await self.client.get_drafts()
            return list(self._expect_ok(result, "Failed to get drafts")["drafts"])
        except Exception:
            logger.exception("Get drafts error")
            return []

    # versions

    async def create_version(self, change_description: str | None = None) -> dict[str, Any]:
        try:
            form_id = self._require_form_id()
            result = await self.client.create_version(form_id, change_description)
            version = self._expect_ok(result, "Failed to create version")["version"]
            self.notifier.show(
                f"Version {version.get('versionNumber')} created successfully", "success"
            )
            return version
        except Exception as exc:
            self._report_failure("Create version", "Failed to create version", exc)
            raise

    async def publish_version(self, version_id: str) -> dict[str, Any]:
        try:
            form_id = self._require_form_id()
            result = await self.client.publish_version(form_id, version_id)
            version = self._expect_ok(result, "Failed to publish version")["version"]
            self.notifier.show(
                f"Version {version.get('versionNumber')} published successfully", "success"
            )
        except Exception as exc:
            self._report_failure("Publish version", "Failed to publish version", exc)
            raise
        self.reload_page()
        return version

    async def rollback_version(self, version_id: str) -> dict[str, Any]:
        try:
            form_id = self._require_form_id()
            result = await self.client.rollback_version(form_id, version_id)
            version = self._expect_ok(result, "Failed to rollback version")["version"]
            self.notifier.show(f"Rolled back to version {version.get('versionNumber')}", "success")
        except Exception as exc:
            self._report_failure("Rollback version", "Failed to rollback version", exc)
            raise
        self.reload_page()
        return version

    async def get_versions(self) -> list[dict[str, Any]]:
        form_id = self.state.id
        if not form_id:
            return []
        try:
            result = await self.client.get_versions(form_id)
            return list(self._expect_ok(result, "Failed to get versions")["versions"])
        except Exception:
            logger.exception("Get versions error")
            return []
