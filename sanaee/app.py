import os
from collections import OrderedDict
from typing import Optional

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
from starlette.middleware.base import BaseHTTPMiddleware

from sanaee.core.config import Settings, get_settings
from sanaee.core.logging import configure_logging
from sanaee.routers import workers as workers_router
from sanaee.services.storage_service import WorkerStore, build_key_value_store
from sanaee.services.worker_service import WorkerDirectory

BASE = os.path.dirname(__file__)
TEMPLATES_DIR = os.path.join(BASE, "templates")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers; images may only come from self or inline data URLs."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; "
            "img-src 'self' data:; "
            "style-src 'self' 'unsafe-inline'; "
            "script-src 'self'",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def create_app(settings: Optional[Settings] = None, store: Optional[WorkerStore] = None) -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (--factory)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Sanaee Worker Directory")
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    store = store or WorkerStore(build_key_value_store(settings))
    directory = WorkerDirectory(store)
    directory.load()

    app.state.settings = settings
    app.state.directory = directory
    app.state.preview_sessions = OrderedDict()
    app.state.templates = Jinja2Templates(directory=TEMPLATES_DIR)

    app.include_router(workers_router.router)
    return app
