import pytest

from notesync.core.exceptions import ValidationFailed
from notesync.services.validators import validate_create, validate_note_id, validate_update


def test_create_defaults_to_unpublished():
    assert validate_create({"title": "A", "content": "B"}) == {
        "title": "A",
        "content": "B",
        "is_published": False,
    }


def test_create_keeps_explicit_publish_flag():
    assert validate_create({"title": "A", "content": "B", "is_published": True})["is_published"] is True


def test_create_treats_null_publish_flag_as_unpublished():
    assert validate_create({"title": "A", "content": "B", "is_published": None})["is_published"] is False


@pytest.mark.parametrize(
    "form,errors",
    [
        ({"title": "", "content": "B"}, {"title": ["Title is required"]}),
        ({"content": "B"}, {"title": ["Title is required"]}),
        ({"title": "A"}, {"content": ["Content is required"]}),
        ({}, {"title": ["Title is required"], "content": ["Content is required"]}),
        ({"title": "A", "content": "B", "is_published": "maybe"}, {"is_published": ["Must be true or false"]}),
        ({"title": "A", "content": "B", "tags": ["x"]}, {"tags": ["Unknown field"]}),
        ({"title": 5, "content": "B"}, {"title": ["Must be text"]}),
    ],
)
def test_create_rejects_invalid_forms(form, errors):
    with pytest.raises(ValidationFailed) as exc_info:
        validate_create(form)
    assert exc_info.value.field_errors == errors


def test_update_returns_only_given_fields():
    assert validate_update({"title": "New", "content": None}) == {"title": "New"}


def test_update_with_nothing_to_change_is_rejected():
    with pytest.raises(ValidationFailed) as exc_info:
        validate_update({})
    assert exc_info.value.field_errors == {"_form": ["Nothing to update"]}


def test_update_rejects_empty_title():
    with pytest.raises(ValidationFailed) as exc_info:
        validate_update({"title": ""})
    assert exc_info.value.field_errors == {"title": ["Title is required"]}


@pytest.mark.parametrize("note_id", ["", "   ", None, 42])
def test_note_id_must_be_a_non_empty_string(note_id):
    with pytest.raises(ValidationFailed):
        validate_note_id(note_id)


def test_note_id_is_opaque():
    assert validate_note_id(" 64f0c2-ab ") == "64f0c2-ab"
