from __future__ import annotations

import logging
from typing import Any, NamedTuple
from urllib.parse import quote, urlencode

import httpx
import orjson

from eformmaker.config import (
    CHECK_TITLE_PATH,
    DRAFT_PATH,
    DRAFT_PUBLISH_PATH,
    DRAFTS_PATH,
    FORM_PATH,
    FORMS_PATH,
    VERSION_PUBLISH_PATH,
    VERSION_ROLLBACK_PATH,
    VERSIONS_PATH,
    Settings,
)

logger = logging.getLogger(__name__)


class ApiResult(NamedTuple):
    response: httpx.Response
    body: Any

    @property
    def ok(self) -> bool:
        return self.response.is_success

    @property
    def status_code(self) -> int:
        return self.response.status_code


def to_query(params: dict[str, Any] | None) -> str:
    return urlencode({k: str(v) for k, v in (params or {}).items() if v is not None})


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def parse_body(response: httpx.Response) -> Any:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        return orjson.loads(response.content) if response.content else None
    return response.text


class FormsApiClient:
    """Async wrapper around the builder REST API.

    Every call returns an ``ApiResult`` whatever the status code; transport
    and decode errors propagate to the caller.
    """

    def __init__(
        self,
        base_url: str,
        *,
        csrf_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if csrf_token:
            headers["CSRF-Token"] = csrf_token
        kwargs: dict[str, Any] = {"base_url": base_url, "headers": headers}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**kwargs)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> FormsApiClient:
        return cls(
            settings.api_url,
            csrf_token=settings.csrf_token or None,
            timeout=settings.http_timeout,
            **kwargs,
        )

    async def __aenter__(self) -> FormsApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        no_cache: bool = False,
    ) -> ApiResult:
        url = path
        query = to_query(params)
        if query:
            url = f"{path}?{query}"
        headers: dict[str, str] = {}
        content: bytes | None = None
        if payload is not None:
            headers["Content-Type"] = "application/json"
            content = orjson.dumps(payload)
        if no_cache:
            headers["Cache-Control"] = "no-store"
        response = await self._client.request(method, url, content=content, headers=headers)
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return ApiResult(response, parse_body(response))

    async def check_title_unique(self, title: str, exclude_id: str | None = None) -> ApiResult:
        return await self._request(
            "GET",
            CHECK_TITLE_PATH,
            params={"title": title, "excludeId": exclude_id},
            no_cache=True,
        )

    async def save_form(self, payload: dict[str, Any]) -> ApiResult:
        return await self._request("POST", FORMS_PATH, payload=payload)

    async def get_form(self, form_id: str) -> ApiResult:
        return await self._request("GET", FORM_PATH.format(form_id=_segment(form_id)), no_cache=True)

    async def delete_form(self, form_id: str) -> ApiResult:
        return await self._request("DELETE", FORM_PATH.format(form_id=_segment(form_id)))

    async def save_draft(self, payload: dict[str, Any]) -> ApiResult:
        return await self._request("POST", DRAFTS_PATH, payload=payload)

    async def get_drafts(self, include_auto_save: bool | None = None) -> ApiResult:
        params = {"includeAutoSave": "true"} if include_auto_save else None
        return await self._request("GET", DRAFTS_PATH, params=params, no_cache=True)

    async def publish_draft(self, draft_id: str) -> ApiResult:
        return await self._request(
            "POST",
            DRAFT_PUBLISH_PATH.format(draft_id=_segment(draft_id)),
            payload={"draftId": draft_id},
        )

    async def delete_draft(self, draft_id: str) -> ApiResult:
        return await self._request("DELETE", DRAFT_PATH.format(draft_id=_segment(draft_id)))

    async def create_version(self, form_id: str, change_description: str | None = None) -> ApiResult:
        return await self._request(
            "POST",
            VERSIONS_PATH.format(form_id=_segment(form_id)),
            payload={"formId": form_id, "changeDescription": change_description},
        )

    async def get_versions(self, form_id: str) -> ApiResult:
        return await self._request(
            "GET", VERSIONS_PATH.format(form_id=_segment(form_id)), no_cache=True
        )

    async def publish_version(self, form_id: str, version_id: str) -> ApiResult:
        return await self._request(
            "POST",
            VERSION_PUBLISH_PATH.format(form_id=_segment(form_id), version_id=_segment(version_id)),
            payload={"formId": form_id, "versionId": version_id},
        )

    async def rollback_version(self, form_id: str, version_id: str) -> ApiResult:
        return await self._request(
            "POST",
            VERSION_ROLLBACK_PATH.format(form_id=_segment(form_id), version_id=_segment(version_id)),
            payload={"formId": form_id, "versionId": version_id},
        )
