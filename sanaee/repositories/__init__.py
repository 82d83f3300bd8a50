"""
Persistence adapters.

These modules encapsulate the capacity-bounded key-value byte stores the
worker collection is written to (in memory, a JSON file on disk, or a SQL
table). Services depend on the KeyValueStore contract rather than on a
concrete backend.
"""
