"""
Top‑level package for the Event Planner API.

All functionality lives in submodules under ``app``.  The package
itself exports nothing so that importing a service module does not
build the web application.
"""

__all__ = []
