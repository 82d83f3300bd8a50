"""
High-level use cases for the Sanaee directory.

Each service module orchestrates domain rules and byte stores (photo
ingestion, collection persistence, add/delete workflow, card display).

Routers (FastAPI endpoints) and scripts call these services instead of
touching the byte store directly.
"""
