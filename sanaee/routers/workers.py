from __future__ import annotations

import urllib.parse as urlparse
from collections import OrderedDict

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from sanaee.core.config import MAX_PREVIEW_SESSIONS
from sanaee.domain.workers import MAX_RATING, SPECIALTIES, SPECIALTY_ICONS
from sanaee.services.card_display import card_view
from sanaee.services.image_service import ImageError, ImageTooLargeError
from sanaee.services.worker_service import (
    ALL,
    PreviewSession,
    StalePreviewError,
    StorageFullError,
    ValidationFailedError,
    WorkerDirectory,
    WorkerNotSavedError,
)

router = APIRouter(prefix="", tags=["workers"])


def _get_directory(request: Request) -> WorkerDirectory:
    directory = getattr(getattr(request.app, "state", None), "directory", None)
    if not directory:
        raise RuntimeError("WorkerDirectory not configured")
    return directory


def _templates(request: Request):
    tpl = getattr(getattr(request.app, "state", None), "templates", None)
    if tpl:
        return tpl
    raise RuntimeError("Templates not configured")


def _preview_sessions(request: Request) -> OrderedDict[str, PreviewSession]:
    state = request.app.state
    if not hasattr(state, "preview_sessions"):
        state.preview_sessions = OrderedDict()
    return state.preview_sessions


def _open_preview(sessions: OrderedDict[str, PreviewSession], key: str, directory: WorkerDirectory) -> PreviewSession:
    """Reuse the form's open session or start one, keeping at most MAX_PREVIEW_SESSIONS."""
    preview = sessions.get(key)
    if preview is not None and preview.is_open:
        sessions.move_to_end(key)
        return preview
    preview = sessions[key] = PreviewSession(directory.compressor)
    sessions.move_to_end(key)
    for stale_key in [k for k, s in sessions.items() if not s.is_open]:
        del sessions[stale_key]
    while len(sessions) > MAX_PREVIEW_SESSIONS:
        _, oldest = sessions.popitem(last=False)
        oldest.close()
    return preview


def _photo_or_none(photo: UploadFile | None) -> UploadFile | None:
    if photo and photo.filename:
        return photo
    return None


def _form_values(name: str, specialty: str, area: str, phone: str, rating: str) -> dict[str, object]:
    return {
        "name": name,
        "specialty": specialty,
        "area": area,
        "phone": phone,
        "rating": rating if str(rating).strip() else MAX_RATING,
    }


def _image_status(exc: ImageError) -> int:
    return 413 if isinstance(exc, ImageTooLargeError) else 400


def _save_status(exc: WorkerNotSavedError) -> int:
    return 507 if isinstance(exc, StorageFullError) else 500


# -------------------------- HTML page --------------------------
@router.get("/", response_class=HTMLResponse)
def directory_page(request: Request, specialty: str = ALL, area: str = ALL, saved: str = "", error: str = ""):
    directory = _get_directory(request)
    workers = directory.filter_workers(specialty, area)
    context = {
        "request": request,
        "cards": [card_view(w) for w in workers],
        "areas": directory.areas(),
        "specialties": SPECIALTIES,
        "icons": SPECIALTY_ICONS,
        "stats": directory.stats(),
        "selected_specialty": specialty or ALL,
        "selected_area": area or ALL,
        "saved": saved,
        "error": error,
    }
    return _templates(request).TemplateResponse(request, "index.html", context)


@router.post("/workers/new")
async def add_worker_form(
    request: Request,
    name: str = Form(""),
    specialty: str = Form(""),
    area: str = Form(""),
    phone: str = Form(""),
    rating: str = Form(""),
    photo: UploadFile | None = File(None),
):
    directory = _get_directory(request)

    def redirect_error(msg: str):
        return RedirectResponse(f"/?error={urlparse.quote_plus(msg)}", status_code=303)

    try:
        await directory.add_worker(_form_values(name, specialty, area, phone, rating), _photo_or_none(photo))
    except (ValidationFailedError, ImageError, WorkerNotSavedError) as exc:
        return redirect_error(str(exc))
    return RedirectResponse("/?saved=1", status_code=303)


@router.post("/workers/{worker_id}/delete")
def delete_worker_form(worker_id: str, request: Request):
    directory = _get_directory(request)
    try:
        directory.delete_worker(worker_id)
    except WorkerNotSavedError as exc:
        return RedirectResponse(f"/?error={urlparse.quote_plus(str(exc))}", status_code=303)
    return RedirectResponse("/?saved=1", status_code=303)


# -------------------------- JSON API --------------------------
@router.get("/api/workers")
def list_workers(request: Request, specialty: str = ALL, area: str = ALL):
    directory = _get_directory(request)
    return {"workers": [card_view(w) for w in directory.filter_workers(specialty, area)]}


@router.get("/api/workers/{worker_id}")
def get_worker(worker_id: str, request: Request):
    worker = _get_directory(request).get_worker(worker_id)
    if not worker:
        raise HTTPException(404, "الصنايعي غير موجود")
    return card_view(worker)


@router.get("/api/stats")
def stats(request: Request):
    directory = _get_directory(request)
    return {**directory.stats(), "areas": directory.areas(), "specialties": list(SPECIALTIES)}


@router.post("/api/workers", status_code=201)
async def create_worker(
    request: Request,
    name: str = Form(""),
    specialty: str = Form(""),
    area: str = Form(""),
    phone: str = Form(""),
    rating: str = Form(""),
    photo: UploadFile | None = File(None),
):
    directory = _get_directory(request)
    try:
        worker = await directory.add_worker(
            _form_values(name, specialty, area, phone, rating), _photo_or_none(photo)
        )
    except ValidationFailedError as exc:
        return JSONResponse(
            {"ok": False, "fields": exc.result.as_fields(), "focus": exc.result.first_invalid_field},
            status_code=422,
        )
    except ImageError as exc:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=_image_status(exc))
    except WorkerNotSavedError as exc:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=_save_status(exc))
    return card_view(worker)


@router.delete("/api/workers/{worker_id}")
def delete_worker(worker_id: str, request: Request):
    directory = _get_directory(request)
    try:
        removed = directory.delete_worker(worker_id)
    except WorkerNotSavedError as exc:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=_save_status(exc))
    return {"ok": True, "removed": removed}


@router.post("/api/preview")
async def preview_photo(request: Request, session: str = Form(""), photo: UploadFile | None = File(None)):
    key = (session or "").strip()
    if not key:
        raise HTTPException(400, "جلسة المعاينة مفقودة")
    upload = _photo_or_none(photo)
    if not upload:
        raise HTTPException(400, "لم يتم اختيار صورة")
    preview = _open_preview(_preview_sessions(request), key, _get_directory(request))
    try:
        image = await preview.preview(upload)
    except StalePreviewError:
        return JSONResponse({"ok": False, "stale": True}, status_code=409)
    except ImageError as exc:
        return JSONResponse({"ok": False, "error": str(exc)}, status_code=_image_status(exc))
    return {"ok": True, "image": image}


@router.delete("/api/preview/{session}")
def close_preview(session: str, request: Request):
    preview = _preview_sessions(request).pop(session, None)
    if preview:
        preview.close()
    return {"ok": True}
