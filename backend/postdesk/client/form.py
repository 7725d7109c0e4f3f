"""
PostDesk — Post Form State Machine
====================================

What:  The state a post form moves through while a user fills it in and
       submits it.
How:   FormState is an immutable pydantic model. Every transition returns a
       new state; illegal transitions raise FormStateError.

Lifecycle:
    idle ──edit──▶ editing ──submit──▶ submitting ──▶ succeeded (form left)
                      ▲                     │
                      │                     ├──▶ error     (422 field errors)
                      └─────────────────────┴──▶ editing   (transport / 5xx)

While submitting, exactly one request is in flight: a second submit raises,
and neither submit nor cancel is offered. Edit forms track dirtiness and only
offer submit once a value differs from what the server sent.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from postdesk.exceptions import FormStateError
from postdesk.schemas.post import FORM_FIELDS


class FormStatus(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    ERROR = "error"


class FormState(BaseModel):
    """One snapshot of a post form."""

    model_config = ConfigDict(frozen=True)

    values: Dict[str, str]
    initial: Dict[str, str]
    status: FormStatus = FormStatus.IDLE
    errors: Dict[str, List[str]] = Field(default_factory=dict)
    notice: Optional[str] = None
    track_dirty: bool = False

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def blank(cls, fields: Sequence[str] = FORM_FIELDS) -> "FormState":
        """Empty create form."""
        empty = {field: "" for field in fields}
        return cls(values=empty, initial=dict(empty))

    @classmethod
    def seeded(cls, values: Mapping[str, str], fields: Sequence[str] = FORM_FIELDS) -> "FormState":
        """Edit form pre-filled with stored values; submit waits for a change."""
        seed = {field: str(values.get(field) or "") for field in fields}
        return cls(values=seed, initial=dict(seed), track_dirty=True)

    # ── Derived flags ─────────────────────────────────────────────────────

    @property
    def is_dirty(self) -> bool:
        return self.values != self.initial

    @property
    def processing(self) -> bool:
        return self.status is FormStatus.SUBMITTING

    @property
    def can_submit(self) -> bool:
        if self.status in (FormStatus.SUBMITTING, FormStatus.SUCCEEDED):
            return False
        return self.is_dirty or not self.track_dirty

    @property
    def can_cancel(self) -> bool:
        return not self.processing

    def error_for(self, field: str) -> Optional[str]:
        """First message for a field, as shown beneath its input."""
        messages = self.errors.get(field)
        return messages[0] if messages else None

    # ── Transitions ───────────────────────────────────────────────────────

    def edit(self, field: str, value: str) -> "FormState":
        """
        Change one field.

        Inputs stay editable during a submission, so the status is left at
        submitting in that case; the in-flight request keeps the values it
        was sent with.
        """
        if field not in self.values:
            raise FormStateError(f"Unknown form field '{field}'", status=self.status.value)
        if self.status is FormStatus.SUCCEEDED:
            raise FormStateError("The form has already been submitted", status=self.status.value)

        values = {**self.values, field: value}
        status = FormStatus.SUBMITTING if self.processing else FormStatus.EDITING
        return self.model_copy(update={"values": values, "status": status})

    def submit(self) -> "FormState":
        """Start a submission; prior field errors and notices are cleared."""
        if self.processing:
            raise FormStateError("A submission is already in progress", status=self.status.value)
        if not self.can_submit:
            raise FormStateError("There are no changes to submit", status=self.status.value)
        return self.model_copy(
            update={"status": FormStatus.SUBMITTING, "errors": {}, "notice": None}
        )

    def succeed(self) -> "FormState":
        self._require_submitting()
        return self.model_copy(update={"status": FormStatus.SUCCEEDED})

    def fail(self, errors: Mapping[str, List[str]], notice: Optional[str] = None) -> "FormState":
        """The server rejected the values; show its field errors."""
        self._require_submitting()
        return self.model_copy(
            update={
                "status": FormStatus.ERROR,
                "errors": {field: list(msgs) for field, msgs in errors.items()},
                "notice": notice,
            }
        )

    def abort(self, notice: str) -> "FormState":
        """The request never produced an answer about the values; back to editing."""
        self._require_submitting()
        return self.model_copy(update={"status": FormStatus.EDITING, "notice": notice})

    def _require_submitting(self) -> None:
        if not self.processing:
            raise FormStateError("No submission is in progress", status=self.status.value)
