"""
PostDesk — blog post management with server-rendered pages
============================================================

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + Views (HTTP, pages)      │  ← named pages, redirects
    ├─────────────────────────────────────┤
    │   Services (business rules)         │  ← not-found / error translation
    ├─────────────────────────────────────┤
    │   Repositories, Models & Schemas    │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘

    postdesk.client talks to the HTTP layer the way a single-page client does.
"""

__version__ = "1.0.0"
