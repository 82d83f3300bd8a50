"""Worker record shape, specialty set and first-run data."""
from __future__ import annotations

import copy
import re
import secrets
import time
from dataclasses import asdict, dataclass
from typing import Any, Mapping

SPECIALTIES = ("نجار", "سباك", "كهربائي", "ميكانيكي")
SPECIALTY_ICONS = {
    "نجار": "🪵",
    "سباك": "🔧",
    "كهربائي": "⚡",
    "ميكانيكي": "🔩",
}
DEFAULT_ICON = "👷"

MAX_RATING = 5
MAX_PHONE_LENGTH = 15

_SEPARATORS_RE = re.compile(r"[\s\-]")


class InvalidRecordError(ValueError):
    """Raised when a stored mapping cannot be turned into a WorkerRecord."""


def strip_phone_separators(raw: str | None) -> str:
    return _SEPARATORS_RE.sub("", raw or "")


def sanitize_phone(raw: str | None) -> str:
    """Keep digits and an optional leading '+', capped at 15 characters."""
    s = strip_phone_separators(str(raw or "")).strip()
    if not s:
        return ""
    keep_plus = s.startswith("+")
    digits = re.sub(r"[^0-9]", "", s)
    phone = ("+" + digits) if keep_plus else digits
    return phone[:MAX_PHONE_LENGTH]


def clamp_rating(value: Any) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:
        return 0
    number = min(float(MAX_RATING), max(0.0, number))
    return int(number + 0.5)


def icon_for(specialty: str | None) -> str:
    return SPECIALTY_ICONS.get(specialty or "", DEFAULT_ICON)


def new_worker_id() -> str:
    return f"w{int(time.time() * 1000)}{secrets.token_hex(3)}"


@dataclass(frozen=True)
class WorkerRecord:
    id: str
    name: str
    specialty: str
    area: str
    phone: str
    rating: int
    image: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "phone", sanitize_phone(self.phone))
        object.__setattr__(self, "rating", clamp_rating(self.rating))

    @classmethod
    def create(
        cls,
        name: str,
        specialty: str,
        area: str,
        phone: str,
        rating: Any = MAX_RATING,
        image: str | None = None,
    ) -> WorkerRecord:
        """Factory used by the ingestion flow; assigns a fresh id."""
        return cls(
            id=new_worker_id(),
            name=(name or "").strip(),
            specialty=(specialty or "").strip(),
            area=(area or "").strip(),
            phone=phone,
            rating=rating,
            image=image or None,
        )

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> WorkerRecord:
        if not isinstance(raw, Mapping):
            raise InvalidRecordError(f"Expected an object, got {type(raw).__name__}")
        worker_id = raw.get("id")
        if not isinstance(worker_id, str) or not worker_id:
            raise InvalidRecordError("Worker entry without a usable id")
        fields = {}
        for key in ("name", "specialty", "area", "phone"):
            value = raw.get(key, "")
            if value is None:
                value = ""
            if not isinstance(value, (str, int)):
                raise InvalidRecordError(f"Field {key!r} of {worker_id} is not text")
            fields[key] = str(value)
        image = raw.get("image")
        if image is not None and not isinstance(image, str):
            raise InvalidRecordError(f"Field 'image' of {worker_id} is not text")
        return cls(id=worker_id, rating=raw.get("rating", 0), image=image or None, **fields)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_WORKERS: tuple[dict[str, Any], ...] = (
    {"id": "w1", "name": "محمد السيد", "specialty": "كهربائي", "area": "المنصورة", "phone": "01012345678", "rating": 5, "image": None},
    {"id": "w2", "name": "أحمد إبراهيم", "specialty": "سباك", "area": "الزقازيق", "phone": "01098765432", "rating": 4, "image": None},
    {"id": "w3", "name": "حسن علي", "specialty": "نجار", "area": "المنصورة", "phone": "01155556666", "rating": 4, "image": None},
    {"id": "w4", "name": "خالد عبد الله", "specialty": "ميكانيكي", "area": "طنطا", "phone": "01234567890", "rating": 5, "image": None},
    {"id": "w5", "name": "عمرو حسين", "specialty": "نجار", "area": "الزقازيق", "phone": "01123456789", "rating": 3, "image": None},
    {"id": "w6", "name": "ياسر ممدوح", "specialty": "كهربائي", "area": "طنطا", "phone": "01056789012", "rating": 5, "image": None},
)


def default_workers() -> list[WorkerRecord]:
    """Fresh records built from a deep copy of the first-run template."""
    return [WorkerRecord.from_dict(raw) for raw in copy.deepcopy(DEFAULT_WORKERS)]
