"""
PostDesk — Middleware Package
===============================

Cross-cutting request handling applied before routing.

Execution order (outermost first):
    [Method Override] → [Rate Limit] → [Request ID] → [Logging] → GZip → CORS → router

    Method override runs first so every later layer, the access log and the
    rate limiter included, sees the effective method (e.g. DELETE from a form).
"""
