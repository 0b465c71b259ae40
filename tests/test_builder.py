import httpx
import orjson
import pytest

from eformmaker.builder import FormBuilder
from eformmaker.errors import ApiError, ValidationError
from eformmaker.local_store import LocalStore
from eformmaker.state import FormState

pytestmark = pytest.mark.asyncio

CHECK = ("GET", "/api/forms/check-title")
SAVE = ("POST", "/api/forms")


def make_builder(api, form_id=None, title="Survey", fields=None, store=None):
    state = FormState(form_id=form_id, title=title, category=2, fields=fields or [], store=store)
    state.bootstrap()
    state.is_dirty = True
    return FormBuilder(state, api.client())


async def test_save_requires_title(api):
    builder = make_builder(api, title="   ")
    with pytest.raises(ValidationError) as info:
        await builder.save()
    assert info.value.errors == ["Form must have a title before saving."]
    assert api.requests == []


async def test_new_form_with_taken_title_is_rejected(api, sample_fields):
    api.add(*CHECK, json={"unique": False})
    builder = make_builder(api, fields=sample_fields)
    with pytest.raises(ValidationError) as info:
        await builder.save()
    assert info.value.errors == ["Form name already exists. Choose another."]
    assert api.calls(*SAVE) == []


async def test_invalid_fields_block_save(api):
    api.add(*CHECK, json={"unique": True})
    builder = make_builder(api)
    builder.state.add_field("dropdown")
    builder.state.update_field(builder.state.selected_id, {"label": "Plan", "options": ""})
    with pytest.raises(ValidationError) as info:
        await builder.save()
    assert info.value.errors == ["Field 1: this field needs options (comma-separated)"]
    assert api.calls(*SAVE) == []


async def test_save_new_form_adopts_server_id(api, sample_fields, tmp_path):
    api.add(*CHECK, json={"unique": True})
    api.add(*SAVE, json={"form": {"id": "f1", "title": "Survey"}})
    store = LocalStore(tmp_path / "builder.json")
    builder = make_builder(api, fields=sample_fields, store=store)

    form = await builder.save()

    assert form == {"id": "f1", "title": "Survey"}
    assert builder.state.id == "f1"
    assert not builder.state.is_dirty
    assert store.read("f1")["title"] == "Survey"
    payload = orjson.loads(api.calls(*SAVE)[0].content)
    assert payload["title"] == "Survey"
    assert payload["categoryId"] == 2
    assert "id" not in payload
    assert all("autoName" not in field for field in payload["fields"])


async def test_existing_form_skips_title_check(api, sample_fields):
    api.add(*SAVE, json={"id": "f7"})
    builder = make_builder(api, form_id="f7", fields=sample_fields)
    await builder.save()
    assert api.calls(*CHECK) == []
    assert orjson.loads(api.calls(*SAVE)[0].content)["id"] == "f7"


async def test_server_rejection_raises_api_error(api, sample_fields):
    api.add(*CHECK, json={"unique": True})
    api.add(*SAVE, status=409, json={"error": "Uniqueness constraint failed."})
    builder = make_builder(api, fields=sample_fields)
    with pytest.raises(ApiError) as info:
        await builder.save()
    assert str(info.value) == "Uniqueness constraint failed."
    assert info.value.status_code == 409
    assert builder.state.is_dirty


async def test_server_rejection_without_message(api, sample_fields):
    api.add(*SAVE, status=500, text="Internal error")
    builder = make_builder(api, form_id="f7", fields=sample_fields)
    with pytest.raises(ApiError, match="Failed to save form."):
        await builder.save()


async def test_check_title(api):
    api.add(*CHECK, json={"unique": False})
    builder = make_builder(api, form_id="f3")
    assert await builder.check_title("Taken") is False
    assert api.requests[0].url.params["excludeId"] == "f3"
    assert await builder.check_title("  ") is True
    assert len(api.requests) == 1


async def test_check_title_failure_counts_as_unique(api):
    api.add(*CHECK, error=httpx.ConnectError("offline"))
    builder = make_builder(api)
    assert await builder.check_title() is True
