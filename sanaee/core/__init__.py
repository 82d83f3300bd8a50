"""
Core utilities shared across the Sanaee package.

This package hosts:
- configuration helpers (env vars, paths, storage backend selection)
- product constants (storage key, image limits)
- logging setup used by the app factory and the scripts

Services and routers depend on these primitives instead of reading
os.environ directly.
"""
