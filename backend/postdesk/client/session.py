"""
PostDesk — Page Client
========================

What:  A programmatic client for the post pages that behaves like the
       browser front-end: it asks for JSON pages, follows the 303 after each
       write, keeps a visit history and drives the form state machine.
How:   Every request carries the X-PostDesk header so the server answers
       with the page object instead of HTML. Route names are resolved through
       the route table shipped in each page, never through hard-coded paths
       (the first visit falls back to `index_url`).

Usage:
    async with PostDeskClient.connect("http://127.0.0.1:8000") as client:
        listing = await client.index()
        form = await client.create_form()
        form.set("title", "Hello")
        form.set("content", "World")
        await form.submit()
"""

import logging
import textwrap
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple

import httpx
from pydantic import BaseModel, ValidationError

from postdesk.client.form import FormState
from postdesk.client.navigation import History, back_target
from postdesk.exceptions import FormStateError, NotFoundError
from postdesk.schemas.post import EditProps, PostResponse
from postdesk.views.page import PAGE_HEADER, Page
from postdesk.views.routes import RouteTable

logger = logging.getLogger(__name__)

PAGE_HEADERS = {PAGE_HEADER: "true", "Accept": "application/json"}

DELETE_PROMPT = "Are you sure you want to delete this post?"
EMPTY_STATE_MESSAGE = "No posts found. Start by creating one!"
GENERIC_FAILURE = "Something went wrong. Please try again."

NOT_FOUND_COMPONENT = "errors/not-found"


class PostListing(BaseModel):
    """The post list as the index page shows it."""

    posts: List[PostResponse]

    @property
    def is_empty(self) -> bool:
        return not self.posts

    @property
    def empty_message(self) -> Optional[str]:
        return EMPTY_STATE_MESSAGE if self.is_empty else None

    def rows(self, width: int = 60) -> List[Tuple[int, str, str]]:
        """(id, title, content preview) per post; the preview is display-only."""
        return [
            (post.id, post.title, textwrap.shorten(post.content, width=width, placeholder="..."))
            for post in self.posts
        ]


class PostDeskClient:
    """
    Client-side navigation over the post pages.

    Attributes:
        page:         the page currently shown (None before the first visit)
        status_code:  HTTP status of the response that produced `page`
        history:      visited URLs, used by back()
        scroll_y:     scroll offset; reset by visits unless scroll is preserved
    """

    def __init__(self, http: httpx.AsyncClient, index_url: str = "/posts"):
        self.http = http
        self.history = History()
        self.page: Optional[Page] = None
        self.status_code: Optional[int] = None
        self.routes = RouteTable({})
        self.scroll_y = 0
        self._index_url = index_url

    @classmethod
    @asynccontextmanager
    async def connect(cls, base_url: str, **http_options: Any) -> AsyncIterator["PostDeskClient"]:
        """Open a client with its own httpx.AsyncClient."""
        async with httpx.AsyncClient(base_url=base_url, **http_options) as http:
            yield cls(http)

    # ── Routing ───────────────────────────────────────────────────────────

    def route(self, name: str, **params: Any) -> str:
        return self.routes.url(name, **params)

    @property
    def index_url(self) -> str:
        if self.routes.has("posts.index"):
            return self.route("posts.index")
        return self._index_url

    # ── Transport ─────────────────────────────────────────────────────────

    async def send(
        self,
        method: str,
        url: str,
        data: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """One page request; redirects are followed so a write ends on its GET."""
        return await self.http.request(
            method,
            url,
            json=dict(data) if data is not None else None,
            headers=PAGE_HEADERS,
            follow_redirects=True,
        )

    def adopt(
        self,
        response: httpx.Response,
        *,
        push: bool = True,
        preserve_scroll: bool = False,
    ) -> Page:
        """
        Make the page in `response` the current page.

        Raises:
            httpx.HTTPStatusError: an error response that is not a page
                (e.g. 429 from the rate limiter)
            ValueError: a successful response that is not a page
        """
        page = page_from(response)
        if page is None:
            response.raise_for_status()
            raise ValueError(f"Response from {response.url} is not a page")

        self.page = page
        self.status_code = response.status_code
        if page.routes:
            self.routes = RouteTable(page.routes)
        if push and self.history.current != page.url:
            self.history.push(page.url)
        elif not push:
            self.history.replace(page.url)
        if not preserve_scroll:
            self.scroll_y = 0
        return page

    # ── Navigation ────────────────────────────────────────────────────────

    async def fetch(self, url: str) -> httpx.Response:
        """GET a page. Transport errors propagate; nothing is retried."""
        return await self.send("GET", url)

    async def visit(self, url: str) -> Page:
        return self.adopt(await self.fetch(url))

    async def index(self) -> PostListing:
        page = await self.visit(self.index_url)
        return PostListing.model_validate(page.props)

    async def show(self, post_id: int) -> PostResponse:
        page = await self.visit(self.route("posts.show", post_id=post_id))
        self._raise_if_missing(page, post_id)
        return PostResponse.model_validate(page.props["post"])

    async def create_form(self) -> "FormSession":
        await self.visit(self.route("posts.create"))
        return FormSession(
            self,
            FormState.blank(),
            method="POST",
            url=self.route("posts.store"),
            action="create",
        )

    async def edit_form(self, post_id: int) -> "FormSession":
        page = await self.visit(self.route("posts.edit", post_id=post_id))
        self._raise_if_missing(page, post_id)
        props = EditProps.model_validate(page.props)
        return FormSession(
            self,
            FormState.seeded(props.post.model_dump()),
            method="PUT",
            url=self.route("posts.update", post_id=post_id),
            action="update",
        )

    async def delete(self, post_id: int, confirm: Callable[[str], bool]) -> bool:
        """
        Delete a post after `confirm(DELETE_PROMPT)` agrees.

        Declining sends nothing. On success the list is reloaded in place
        with the scroll position kept.
        """
        if not confirm(DELETE_PROMPT):
            logger.debug("Delete of post %s cancelled", post_id)
            return False

        response = await self.send("DELETE", self.route("posts.destroy", post_id=post_id))
        page = self.adopt(response, preserve_scroll=True)
        self._raise_if_missing(page, post_id)
        return True

    async def back(self) -> Page:
        """Previous page when there is one, otherwise the post list."""
        target = back_target(self.history, self.index_url)
        if not target.from_history:
            return await self.visit(target.url)
        self.history.pop()
        return self.adopt(await self.fetch(target.url), push=False)

    @staticmethod
    def _raise_if_missing(page: Page, post_id: int) -> None:
        if page.component == NOT_FOUND_COMPONENT:
            raise NotFoundError("post", str(post_id))


class FormSession:
    """
    One create or edit form bound to a client.

    The current FormState is on `state`; `set`, `submit` and `cancel` move it.
    """

    def __init__(
        self,
        client: PostDeskClient,
        state: FormState,
        method: str,
        url: str,
        action: str,
    ):
        self.client = client
        self.state = state
        self.method = method
        self.url = url
        self.action = action

    @property
    def failure_notice(self) -> str:
        return f"Failed to {self.action} post. Please check the errors."

    def set(self, field: str, value: str) -> FormState:
        self.state = self.state.edit(field, value)
        return self.state

    async def submit(self) -> FormState:
        """
        Send the current values.

        Success leaves the form for the post list. A 422 keeps the typed
        values and shows the server's field errors. A transport failure or
        any other error status returns the form to editing with a notice.

        Raises:
            FormStateError: a submission is already in flight, or an edit
                form has no changes
        """
        self.state = self.state.submit()
        try:
            response = await self.client.send(self.method, self.url, self.state.values)
        except httpx.TransportError as exc:
            logger.warning("Submitting %s %s failed: %s", self.method, self.url, exc)
            self.state = self.state.abort(GENERIC_FAILURE)
            return self.state

        if response.status_code == 422:
            self.state = self.state.fail(_field_errors(response), notice=self.failure_notice)
        elif response.is_success:
            self.client.adopt(response)
            self.state = self.state.succeed()
        else:
            logger.warning(
                "Submitting %s %s answered %d", self.method, self.url, response.status_code
            )
            self.state = self.state.abort(_error_message(response) or GENERIC_FAILURE)
        return self.state

    async def cancel(self) -> Page:
        if not self.state.can_cancel:
            raise FormStateError("Cannot cancel while submitting", status=self.state.status.value)
        return await self.client.back()


# ── Response helpers ──────────────────────────────────────────────────────


def _json_body(response: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def page_from(response: httpx.Response) -> Optional[Page]:
    """The page object in a response, or None if it carries something else."""
    body = _json_body(response)
    if body is None or "component" not in body:
        return None
    try:
        return Page.model_validate(body)
    except ValidationError:
        return None


def _field_errors(response: httpx.Response) -> Dict[str, List[str]]:
    body = _json_body(response) or {}
    errors = body.get("props", body).get("errors") or {}
    return {field: list(messages) for field, messages in errors.items()}


def _error_message(response: httpx.Response) -> Optional[str]:
    body = _json_body(response) or {}
    return body.get("props", body).get("message")
