from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Keep the sanaee package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sanaee.domain.validation import RULES, validate_form  # noqa: E402


def _form(**overrides):
    values = {"name": "محمد السيد", "specialty": "كهربائي", "area": "المنصورة", "phone": "01012345678"}
    values.update(overrides)
    return values


def test_valid_form_passes():
    result = validate_form(_form())
    assert result.valid
    assert result.errors == {}
    assert result.first_invalid_field is None


def test_name_needs_three_characters_after_trim():
    assert "name" in validate_form(_form(name="Al")).errors
    assert "name" in validate_form(_form(name="  Al  ")).errors
    assert validate_form(_form(name="Ali")).valid


def test_specialty_must_come_from_fixed_set():
    assert "specialty" in validate_form(_form(specialty="")).errors
    assert "specialty" in validate_form(_form(specialty="دهان")).errors


def test_area_needs_two_characters():
    assert "area" in validate_form(_form(area=" x ")).errors
    assert validate_form(_form(area="قنا")).valid


@pytest.mark.parametrize("phone", ["01099999999", "010-9999-9999", "010 9999 9999", "0109999", "123456789012345"])
def test_phone_accepts_local_mobile_or_generic_digits(phone):
    assert validate_form(_form(phone=phone)).valid


@pytest.mark.parametrize("phone", ["", "123456", "0109999abc", "+201012345678", "1234567890123456"])
def test_phone_rejects_everything_else(phone):
    assert "phone" in validate_form(_form(phone=phone)).errors


def test_all_failures_reported_in_rule_order():
    result = validate_form({})
    assert list(result.errors) == [rule.field for rule in RULES]
    assert result.first_invalid_field == "name"
    assert not result.valid


def test_focus_goes_to_first_failing_field():
    result = validate_form(_form(area="", phone="12"))
    assert list(result.errors) == ["area", "phone"]
    assert result.first_invalid_field == "area"
    fields = result.as_fields()
    assert fields["name"] == {"ok": True, "message": ""}
    assert fields["phone"]["ok"] is False
    assert fields["phone"]["message"]
