from __future__ import annotations

import pytest

from onboarding.constants.fields import ADDRESS, EMAIL, LOGO, NAME, PHONE_NUMBER, PREFIX, STAMP
from onboarding.services.attachments import AttachmentManager, SelectedFile
from onboarding.services.field_store import FieldStateStore
from onboarding.utils.validators import (
    FILE_TYPE_MESSAGE,
    is_non_empty_text,
    is_valid_email,
    validate_field,
    validate_school_setup,
)


def _full_snapshot(seed, text_values, registry, logo_file, stamp_file):
    store = FieldStateStore(seed=seed)
    for name, value in text_values.items():
        store.set(name, value)
    manager = AttachmentManager(store, registry=registry)
    manager.select(LOGO, logo_file)
    manager.select(STAMP, stamp_file)
    return store.get_all()


def test_complete_snapshot_is_valid(seed, text_values, registry, logo_file, stamp_file):
    errors = validate_school_setup(_full_snapshot(seed, text_values, registry, logo_file, stamp_file))
    assert set(errors) == {NAME, EMAIL, PHONE_NUMBER, ADDRESS, PREFIX, LOGO, STAMP}
    assert all(message is None for message in errors.values())


def test_empty_snapshot_reports_every_required_field(seed):
    errors = validate_school_setup(FieldStateStore(seed=seed).get_all())
    assert {k for k, v in errors.items() if v} == {PHONE_NUMBER, ADDRESS, PREFIX, LOGO, STAMP}
    assert errors[PHONE_NUMBER] == "Phone number is required"
    assert errors[LOGO] == "School logo is required"


@pytest.mark.parametrize("email", ["", "acme", "a@b", "a b@c.io"])
def test_malformed_email(email):
    assert not is_valid_email(email)
    assert validate_field(EMAIL, email) is not None


def test_valid_email():
    assert is_valid_email("a@acme.io")
    assert validate_field(EMAIL, "a@acme.io") is None


def test_whitespace_is_empty():
    assert not is_non_empty_text("   ")
    assert validate_field(ADDRESS, "   ") == "Address is required"


def test_file_field_with_wrong_type():
    class FakeAttachment:
        extension = "gif"

    assert validate_field(STAMP, FakeAttachment()) == FILE_TYPE_MESSAGE


def test_file_field_accepts_attachment(registry, seed):
    manager = AttachmentManager(FieldStateStore(seed=seed), registry=registry)
    attachment = manager.select(LOGO, SelectedFile(name="logo.webp", data=b"x"))
    assert validate_field(LOGO, attachment) is None


def test_unknown_field_is_valid():
    assert validate_field("website", "") is None
