"""Create the kv_entries table; safe to run repeatedly."""
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers KeyValueEntry on Base.metadata


def ensure_schema() -> None:
    Base.metadata.create_all(bind=get_engine(), checkfirst=True)


if __name__ == "__main__":
    try:
        ensure_schema()
        print("kv_entries table is ready.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
