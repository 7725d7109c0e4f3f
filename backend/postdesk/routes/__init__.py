# Routes package init
"""
PostDesk — Routes Package
===========================

What:  HTTP route handlers for the post pages and the health probe.
How:   Each module handles one resource; handlers return named pages through
       the injected PageRenderer or redirect after a write.

Route Inventory:
    - posts.py:   /posts resource (index, create, store, show, edit,
                  update, destroy) and the `/` redirect
    - health.py:  GET /health (service health check)

Routes stay thin: they read the submission, call PostService and pick the
page or redirect. Validation lives in the schemas, data access in the
service and repository.
"""
