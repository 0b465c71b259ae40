from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

LS_KEY = "eform-maker"

AUTOSAVE_INTERVAL = 30.0
AUTOSAVE_DEBOUNCE = 2.0
AUTOSAVE_TOAST_SECONDS = 2.0

CHECK_TITLE_PATH = "/api/forms/check-title"
FORMS_PATH = "/api/forms"
FORM_PATH = "/api/forms/{form_id}"
DRAFTS_PATH = "/api/drafts"
DRAFT_PATH = "/api/drafts/{draft_id}"
DRAFT_PUBLISH_PATH = "/api/drafts/{draft_id}/publish"
VERSIONS_PATH = "/api/forms/{form_id}/versions"
VERSION_PUBLISH_PATH = "/api/forms/{form_id}/versions/{version_id}/publish"
VERSION_ROLLBACK_PATH = "/api/forms/{form_id}/versions/{version_id}/rollback"
BUILDER_PAGE_PATH = "/builder/{form_id}"


def _env_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.api_url = os.getenv("EFORM_API_URL", "http://localhost:3000").rstrip("/")
        self.csrf_token = os.getenv("EFORM_CSRF_TOKEN", "")
        self.http_timeout = _env_float("EFORM_HTTP_TIMEOUT", None)
        self.local_store_path = Path(os.getenv("EFORM_LOCAL_STORE", "./data/builder.json"))
        self.autosave_interval = _env_float("EFORM_AUTOSAVE_INTERVAL", AUTOSAVE_INTERVAL)
        self.autosave_debounce = _env_float("EFORM_AUTOSAVE_DEBOUNCE", AUTOSAVE_DEBOUNCE)
        self.log_level = os.getenv("EFORM_LOG_LEVEL", "INFO").upper()
