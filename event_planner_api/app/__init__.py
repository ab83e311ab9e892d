"""
Application package.

``core`` holds configuration, logging, errors, persistence and
security; ``services`` holds the credential store, event store and
reminder scheduler; ``api`` exposes them over HTTP.  The ASGI
application is built in ``main`` (``event_planner_api.app.main:app``)
and is deliberately not imported here: building it requires
``SECRET_KEY``.
"""
