from eformmaker.dnd import Placeholder
from eformmaker.local_store import LocalStore
from eformmaker.state import FormState


def field_ids(state: FormState) -> list[str]:
    return [field["id"] for field in state.fields]


def card_ids(state: FormState) -> list[str]:
    return [card.field_id for card in state.preview.cards()]


def test_add_field_selects_it():
    state = FormState()
    field = state.add_field("dropdown")
    assert state.fields == [field]
    assert state.selected_id == field["id"]
    assert card_ids(state) == [field["id"]]


def test_label_edit_derives_name_until_name_is_set():
    state = FormState()
    field = state.add_field("singleLine")
    state.update_field(field["id"], {"label": "Company Name"})
    assert field["name"] == "company_name"

    state.update_field(field["id"], {"name": "org"})
    state.update_field(field["id"], {"label": "Organisation"})
    assert field["name"] == "org"
    assert field["autoName"] is False


def test_empty_name_edit_is_ignored():
    state = FormState()
    field = state.add_field("singleLine")
    state.update_field(field["id"], {"label": "City"})
    state.update_field(field["id"], {"name": ""})
    assert field["name"] == "city"
    assert field["autoName"] is True


def test_options_only_apply_to_option_types():
    state = FormState()
    text = state.add_field("singleLine")
    choice = state.add_field("checkboxes")
    state.update_field(text["id"], {"options": "a, b"})
    state.update_field(choice["id"], {"options": "x, y", "required": 1})
    assert text["options"] == ""
    assert choice["options"] == "x, y"
    assert choice["required"] is True


def test_dirty_only_after_bootstrap():
    state = FormState()
    state.add_field("email")
    assert not state.is_dirty
    state.bootstrap()
    state.add_field("email")
    assert state.is_dirty
    state.clear_dirty()
    assert not state.is_dirty


def test_drag_and_drop_reorders_fields(sample_fields):
    state = FormState(fields=sample_fields)
    state.bootstrap()

    state.start_drag(0)
    state.drag_over(2, before=False)
    assert any(isinstance(child, Placeholder) for child in state.preview.children)

    assert state.drop() is True
    assert field_ids(state) == ["fld_b", "fld_c", "fld_a"]
    assert card_ids(state) == ["fld_b", "fld_c", "fld_a"]
    assert [card.index for card in state.preview.cards()] == [0, 1, 2]
    assert state.selected_id == "fld_a"
    assert state.is_dirty
    state.end_drag()
    assert state.drag is None
    assert not any(isinstance(child, Placeholder) for child in state.preview.children)


def test_drop_on_own_position_changes_nothing(sample_fields):
    state = FormState(fields=sample_fields)
    state.bootstrap()
    before = state.fields

    state.start_drag(1)
    state.drag_over(1, before=False)
    assert state.drop() is False
    assert state.fields is before
    assert not state.is_dirty


def test_fast_drop_without_drag_over(sample_fields):
    state = FormState(fields=sample_fields)
    state.start_drag(2)
    assert state.drop(0, before=True) is True
    assert field_ids(state) == ["fld_c", "fld_a", "fld_b"]


def test_new_drag_ends_previous_session(sample_fields):
    state = FormState(fields=sample_fields)
    first = state.start_drag(0)
    state.drag_over(2)
    second = state.start_drag(1)
    assert first is not None and not first.active
    assert first.placeholder.parent is None
    assert state.drag is second


def test_start_drag_out_of_range(sample_fields):
    state = FormState(fields=sample_fields)
    assert state.start_drag(5) is None
    assert state.drop() is False


def test_delete_selected_moves_selection(sample_fields):
    state = FormState(fields=sample_fields)
    state.select("fld_c")
    state.delete_selected()
    assert field_ids(state) == ["fld_a", "fld_b"]
    assert state.selected_id == "fld_b"

    state.select("fld_a")
    state.delete_selected()
    state.delete_selected()
    assert state.fields == []
    assert state.selected_id is None


def test_persist_and_restore(tmp_path, sample_fields):
    store = LocalStore(tmp_path / "builder.json")
    state = FormState(form_id="form-1", title="Signup", category=4, fields=sample_fields, store=store)
    state.persist()

    restored = FormState(form_id="form-1", store=store)
    restored.bootstrap()
    assert restored.title == "Signup"
    assert restored.category == 4
    assert field_ids(restored) == ["fld_a", "fld_b", "fld_c"]
    assert restored.selected_id == "fld_c"


def test_snapshot_is_detached(sample_fields):
    state = FormState(title="T", fields=sample_fields)
    snapshot = state.snapshot()
    state.fields[0]["label"] = "Changed"
    assert snapshot["fields"][0]["label"] == "First name"
    assert set(snapshot) == {"title", "fields", "category"}


def test_category_change_is_persisted_and_dirty(tmp_path):
    store = LocalStore(tmp_path / "builder.json")
    state = FormState(form_id="form-2", title="Intake", store=store)
    state.bootstrap()
    state.set_category(8)
    assert state.is_dirty
    assert store.read("form-2")["category"] == 8
