"""Helpers turning worker records into card view-models for the page and the JSON API."""
from __future__ import annotations

from typing import Any

from sanaee.domain.workers import MAX_RATING, SPECIALTY_ICONS, WorkerRecord, clamp_rating, icon_for, sanitize_phone
from sanaee.services.image_service import is_safe_embed_source

STAR_FILLED = "★"
STAR_EMPTY = "☆"


def build_stars(rating: Any) -> str:
    filled = clamp_rating(rating)
    return STAR_FILLED * filled + STAR_EMPTY * (MAX_RATING - filled)


def resolve_avatar(worker: WorkerRecord) -> dict[str, str | None]:
    """Inline photo only when it is a safe image data URL; otherwise the specialty icon."""
    if is_safe_embed_source(worker.image):
        return {"image": worker.image, "icon": None}
    return {"image": None, "icon": icon_for(worker.specialty)}


def card_view(worker: WorkerRecord) -> dict[str, Any]:
    phone = sanitize_phone(worker.phone)
    avatar = resolve_avatar(worker)
    return {
        "id": worker.id,
        "name": worker.name,
        "specialty": worker.specialty,
        "specialty_label": f"{SPECIALTY_ICONS.get(worker.specialty, '')} {worker.specialty}".strip(),
        "area": worker.area,
        "phone": phone,
        "tel_href": f"tel:{phone}",
        "rating": clamp_rating(worker.rating),
        "stars": build_stars(worker.rating),
        "image": avatar["image"],
        "icon": avatar["icon"],
    }
