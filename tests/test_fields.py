import pytest

from eformmaker.fields import (
    DEFAULT_OPTIONS,
    FieldType,
    clean_field,
    defaults_for,
    has_valid_options,
    needs_options,
    new_field,
    parse_options,
    partial_for,
)


def test_checkbox_defaults():
    defaults = defaults_for("checkboxes")
    assert defaults.options == "Option 1, Option 2"
    assert defaults.placeholder == ""
    assert defaults.label == "Checkboxes"


def test_dropdown_defaults():
    defaults = defaults_for(FieldType.DROPDOWN)
    assert defaults == ("Dropdown", "Select…", DEFAULT_OPTIONS)


def test_non_option_type_has_no_options():
    defaults = defaults_for("email")
    assert defaults.options == ""
    assert defaults.placeholder == "email@example.com"


@pytest.mark.parametrize("field_type", list(FieldType))
def test_every_type_has_a_label_and_partial(field_type):
    assert defaults_for(field_type).label
    assert partial_for(field_type)


def test_unknown_type_falls_back_to_raw_string():
    assert defaults_for("signature") == ("signature", "", "")
    assert defaults_for(None) == ("", "", "")
    assert partial_for("signature") == "text"


def test_needs_options():
    assert needs_options("dropdown")
    assert needs_options("multipleChoice")
    assert not needs_options("singleLine")
    assert not needs_options("bogus")


def test_parse_options():
    assert parse_options(" a, ,b ,") == ["a", "b"]
    assert parse_options(["x ", " ", "y"]) == ["x", "y"]
    assert parse_options(None) == []


def test_has_valid_options():
    assert has_valid_options({"type": "dropdown", "options": "A"})
    assert not has_valid_options({"type": "dropdown", "options": " , "})
    assert has_valid_options({"type": "email"})


def test_new_field_uses_defaults():
    field = new_field("multipleChoice")
    assert field["id"].startswith("fld_")
    assert field["type"] == "multipleChoice"
    assert field["label"] == "Multiple Choice"
    assert field["options"] == DEFAULT_OPTIONS
    assert field["name"] == ""
    assert field["autoName"] is True
    assert field["required"] is False


def test_new_fields_get_distinct_ids():
    assert new_field("email")["id"] != new_field("email")["id"]


def test_clean_field_keeps_only_persisted_keys():
    field = new_field("dropdown")
    field["options"] = ["Red", "Green"]
    field["countryIso2"] = "id"
    cleaned = clean_field(field)
    assert "autoName" not in cleaned
    assert "countryIso2" not in cleaned
    assert cleaned["options"] == "Red, Green"


def test_clean_field_drops_options_for_plain_types():
    cleaned = clean_field({"id": "fld_x", "type": "singleLine", "label": "A", "options": "x"})
    assert "options" not in cleaned
