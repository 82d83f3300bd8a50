#!/usr/bin/env python3
"""
Reset the stored directory back to the first-run default workers.

Usage:
  python scripts/reset_workers.py [--yes]
"""
from __future__ import annotations

import argparse
import sys

from sanaee.core.config import get_settings
from sanaee.core.logging import configure_logging
from sanaee.services.storage_service import WorkerStore, build_key_value_store


def main() -> None:
    ap = argparse.ArgumentParser(description="Reset stored workers to the defaults")
    ap.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    if not args.yes:
        answer = input(f"Replace all workers in the {settings.storage_backend} store? [y/N] ")
        if answer.strip().lower() not in {"y", "yes"}:
            raise SystemExit("Aborted")

    store = WorkerStore(build_key_value_store(settings))
    previous = len(store.load())
    defaults = store.defaults()
    if not store.save(defaults):
        raise SystemExit(f"Could not write defaults: {store.last_error}")

    print("OK: workers reset")
    print(f"  Previous count: {previous}")
    print(f"  Default count: {len(defaults)}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
