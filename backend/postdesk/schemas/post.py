"""
PostDesk — Pydantic Schemas
=============================

What:  The data contract between the handlers and the views: submitted form
       data on the way in, page props on the way out.
How:   Handlers validate submissions with PostForm and build page props from
       the *Props models; the renderer serializes them with model_dump(mode="json").

Schemas are separate from the SQLAlchemy model so the page payload controls
exactly which columns reach the client.
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from postdesk.exceptions import ValidationFailedError
from postdesk.models.post import TITLE_MAX_LENGTH

FORM_FIELDS = ("title", "content")


# ══════════════════════════════════════════════════════════════════════════
# Request Models: what the forms submit
# ══════════════════════════════════════════════════════════════════════════


class PostForm(BaseModel):
    """
    Validated title/content submission for store and update.

    Both fields are required: absent, null, empty and whitespace-only values
    are all rejected. Surrounding whitespace is trimmed before storage.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str = Field(min_length=1)

    @classmethod
    def from_submission(cls, data: Mapping[str, Any]) -> "PostForm":
        """
        Validate raw submitted values (JSON body or form fields).

        Raises:
            ValidationFailedError: with one message list per invalid field and
                the submitted values as old input.
        """
        present = {
            name: data[name] for name in FORM_FIELDS
            if name in data and data[name] is not None
        }
        try:
            return cls.model_validate(present)
        except PydanticValidationError as exc:
            raise ValidationFailedError(
                errors=_field_errors(exc),
                old_input=old_input(data),
            ) from exc


def old_input(data: Mapping[str, Any]) -> Dict[str, str]:
    """Submitted values to echo back into a re-rendered form."""
    return {
        name: data[name] if isinstance(data.get(name), str) else ""
        for name in FORM_FIELDS
    }


def _field_errors(exc: PydanticValidationError) -> Dict[str, List[str]]:
    """Translate pydantic error records into field → messages (field declaration order)."""
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "form"
        errors.setdefault(field, []).append(_message_for(field, error))
    return errors


def _message_for(field: str, error: Mapping[str, Any]) -> str:
    kind = error["type"]
    if kind in ("missing", "string_too_short"):
        return f"The {field} field is required."
    if kind == "string_too_long":
        limit = error.get("ctx", {}).get("max_length", TITLE_MAX_LENGTH)
        return f"The {field} field must not be greater than {limit} characters."
    if kind == "string_type":
        return f"The {field} field must be a string."
    return f"The {field} field is invalid."


# ══════════════════════════════════════════════════════════════════════════
# Page Props: what each named view receives
# ══════════════════════════════════════════════════════════════════════════


class PostResponse(BaseModel):
    """Full representation of a post as sent to the views."""

    id: int = Field(description="Post identifier")
    title: str
    content: str
    created_at: datetime = Field(description="When the post was created (UTC)")
    updated_at: datetime = Field(description="When the post was last changed (UTC)")

    model_config = {"from_attributes": True}


class IndexProps(BaseModel):
    """Props for `posts/index`."""

    posts: List[PostResponse]


class ShowProps(BaseModel):
    """Props for `posts/show`."""

    post: PostResponse


class FormProps(BaseModel):
    """
    Props for `posts/create`.

    errors: field → messages from a failed submission (empty on first render)
    old:    values from a failed submission, used to refill the inputs
    """

    errors: Dict[str, List[str]] = Field(default_factory=dict)
    old: Dict[str, str] = Field(default_factory=dict)


class EditProps(FormProps):
    """Props for `posts/edit`; `post` holds the stored values the form is seeded with."""

    post: PostResponse


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error payload, used as props of the error pages and as the
    body of plain JSON error responses.

    Example:
        {
            "error": "not_found",
            "message": "Post 42 was not found.",
            "request_id": "1f0c9a2b"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[Dict[str, List[str]]] = Field(
        default=None, description="Field errors for validation failures"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""

    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
