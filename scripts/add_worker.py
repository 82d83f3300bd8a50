#!/usr/bin/env python3
"""
Add a worker to the configured store (same rules as the web form).

Usage:
  python scripts/add_worker.py --name "حسن علي" --specialty نجار --area المنصورة \
      --phone 01155556666 [--rating 4] [--photo path/to/photo.jpg]
"""
from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from sanaee.core.config import get_settings
from sanaee.core.logging import configure_logging
from sanaee.domain.workers import SPECIALTIES
from sanaee.services.image_service import ImageError, InMemoryImageFile
from sanaee.services.storage_service import WorkerStore, build_key_value_store
from sanaee.services.worker_service import ValidationFailedError, WorkerDirectory


def load_photo(path: str) -> InMemoryImageFile:
    photo = Path(path)
    if not photo.is_file():
        raise SystemExit(f"Photo '{path}' not found")
    content_type = mimetypes.guess_type(photo.name)[0] or "application/octet-stream"
    return InMemoryImageFile(content_type=content_type, data=photo.read_bytes(), filename=photo.name)


def main() -> None:
    ap = argparse.ArgumentParser(description="Add a worker to the directory")
    ap.add_argument("--name", required=True)
    ap.add_argument("--specialty", required=True, choices=SPECIALTIES)
    ap.add_argument("--area", required=True)
    ap.add_argument("--phone", required=True)
    ap.add_argument("--rating", type=int, default=5, help="0-5 (default: 5)")
    ap.add_argument("--photo", help="Optional photo file (max 2 MiB)")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    directory = WorkerDirectory(WorkerStore(build_key_value_store(settings)))
    directory.load()

    values = {
        "name": args.name,
        "specialty": args.specialty,
        "area": args.area,
        "phone": args.phone,
        "rating": args.rating,
    }
    photo = load_photo(args.photo) if args.photo else None
    try:
        worker = asyncio.run(directory.add_worker(values, photo))
    except ValidationFailedError as exc:
        for field, message in exc.result.errors.items():
            sys.stderr.write(f"  {field}: {message}\n")
        raise SystemExit(2)
    except ImageError as exc:
        raise SystemExit(f"Photo rejected: {exc}")

    print("OK: worker added")
    print(f"  ID: {worker.id}")
    print(f"  Phone: {worker.phone}")
    print(f"  Photo: {'yes' if worker.image else 'no'}")
    print(f"  Total workers: {len(directory.workers)}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI use
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
