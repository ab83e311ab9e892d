"""
Pydantic schema definitions for API payloads.

Schemas are kept separate from the SQLite rows so the wire format
(camelCase field names) does not leak into the storage layer.
"""
