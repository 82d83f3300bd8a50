from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Keep the sanaee package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sanaee.domain.workers import (  # noqa: E402
    DEFAULT_ICON,
    DEFAULT_WORKERS,
    InvalidRecordError,
    WorkerRecord,
    default_workers,
    icon_for,
    sanitize_phone,
)


def test_create_assigns_unique_prefixed_ids():
    ids = {WorkerRecord.create("علي حسن", "نجار", "طنطا", "01012345678").id for _ in range(200)}
    assert len(ids) == 200
    assert all(worker_id.startswith("w") for worker_id in ids)


def test_create_normalizes_phone_and_trims_text():
    worker = WorkerRecord.create("  علي حسن ", "سباك", " طنطا ", "010-1234 5678")
    assert worker.phone == "01012345678"
    assert worker.name == "علي حسن"
    assert worker.area == "طنطا"
    assert worker.image is None


def test_phone_keeps_leading_plus_and_caps_length():
    assert sanitize_phone("+20 100-123-4567") == "+201001234567"
    assert sanitize_phone("javascript:alert(1)") == "1"
    assert len(sanitize_phone("1" * 40)) == 15
    assert sanitize_phone("٠١٠-1234") == "1234"


@pytest.mark.parametrize("raw, expected", [(-3, 0), (9, 5), (3.6, 4), (2.4, 2), ("4", 4), ("x", 0), (None, 0)])
def test_rating_is_clamped(raw, expected):
    worker = WorkerRecord(id="w1", name="علي", specialty="نجار", area="طنطا", phone="0100", rating=raw)
    assert worker.rating == expected


def test_from_dict_rejects_unusable_entries():
    with pytest.raises(InvalidRecordError):
        WorkerRecord.from_dict({"name": "بدون معرف"})
    with pytest.raises(InvalidRecordError):
        WorkerRecord.from_dict(["w1", "x"])  # type: ignore[arg-type]
    with pytest.raises(InvalidRecordError):
        WorkerRecord.from_dict({"id": "w1", "name": {"nested": True}})


def test_to_dict_round_trips():
    worker = WorkerRecord.create("علي حسن", "نجار", "طنطا", "01012345678", rating=3, image="data:image/jpeg;base64,AA==")
    assert WorkerRecord.from_dict(worker.to_dict()) == worker


def test_default_workers_are_independent_of_template():
    first = default_workers()
    first.clear()
    again = default_workers()
    assert len(again) == len(DEFAULT_WORKERS) == 6
    assert [w.id for w in again] == ["w1", "w2", "w3", "w4", "w5", "w6"]


def test_unknown_specialty_falls_back_to_default_icon():
    assert icon_for("نجار") == "🪵"
    assert icon_for("دهان") == DEFAULT_ICON
    assert icon_for(None) == DEFAULT_ICON
