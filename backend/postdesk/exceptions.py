"""
PostDesk — Exceptions
=======================

What:  The errors PostDesk raises on purpose, each tied to one response.
How:   Every error has a `message` that is safe to show to a user and a
       `context` dict that only ever reaches the server log. main.py maps
       each class to a status code and an error page.

    PostDeskError
    ├── ValidationFailedError    → 422, form re-rendered with field errors
    ├── NotFoundError            → 404, errors/not-found
    ├── DatabaseError            → 500, errors/error (message replaced)
    ├── RateLimitExceededError   → 429 JSON with Retry-After
    └── FormStateError           client only, never sent over HTTP
"""

from typing import Any, Dict, List, Mapping, Optional


class PostDeskError(Exception):
    def __init__(
        self,
        message: str = "Something went wrong.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})


class ValidationFailedError(PostDeskError):
    """
    A submitted post form had missing or empty fields.

    `errors` maps a field to its messages and `old_input` holds what was
    submitted, so the re-rendered form keeps the user's text:

        errors    = {"title": ["The title field is required."]}
        old_input = {"title": "", "content": "Body text"}
    """

    def __init__(
        self,
        errors: Mapping[str, List[str]],
        old_input: Optional[Mapping[str, Any]] = None,
        message: str = "The given data was invalid.",
    ):
        self.errors: Dict[str, List[str]] = {field: list(msgs) for field, msgs in errors.items()}
        self.old_input: Dict[str, Any] = dict(old_input or {})
        super().__init__(message, {"fields": sorted(self.errors)})


class NotFoundError(PostDeskError):
    """No row for the id in the URL (show, edit, update or destroy)."""

    def __init__(self, resource: str = "resource", resource_id: Optional[str] = None):
        context: Dict[str, Any] = {"resource": resource}
        if resource_id is None:
            message = f"The requested {resource} was not found."
        else:
            message = f"{resource.capitalize()} {resource_id} was not found."
            context["resource_id"] = resource_id
        super().__init__(message, context)


class DatabaseError(PostDeskError):
    """A query failed. Clients only ever see a generic message."""

    def __init__(
        self,
        message: str = "A database error occurred.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)


class RateLimitExceededError(PostDeskError):
    def __init__(self, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(
            f"Too many changes in a short time. Try again in {retry_after} seconds.",
            {"retry_after": retry_after},
        )


class FormStateError(PostDeskError):
    """
    A form transition that the current state does not allow: submitting
    twice, submitting an unchanged edit form, editing after success or
    cancelling mid-submit. `status` is the state the form was in.
    """

    def __init__(self, message: str, status: Optional[str] = None):
        super().__init__(message, {"status": status} if status else None)
        self.status = status
