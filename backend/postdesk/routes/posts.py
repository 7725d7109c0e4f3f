"""
PostDesk — Post Route Handlers
================================

What:  The seven post actions plus the root redirect.
How:   Each read action loads data through PostService and returns a named
       page through the injected PageRenderer. Each mutating action validates
       the submission, writes through PostService and answers 303 See Other
       to posts.index, so the follow-up request is always a GET.

Route Inventory:
    GET        /posts                  posts.index    → page posts/index
    GET        /posts/create           posts.create   → page posts/create
    POST       /posts                  posts.store    → 303 posts.index
    GET        /posts/{id}             posts.show     → page posts/show
    GET        /posts/{id}/edit        posts.edit     → page posts/edit
    PUT|PATCH  /posts/{id}             posts.update   → 303 posts.index
    DELETE     /posts/{id}             posts.destroy  → 303 posts.index

Failures (handled globally in main.py):
    NotFoundError          → 404 page errors/not-found
    ValidationFailedError  → 422, the originating form page re-rendered with
                             `errors` and `old` (see FORM_PAGES)

The `{post_id:int}` convertor means non-numeric ids never match a post route
and fall through to the router's 404.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from postdesk.database import get_db_session
from postdesk.schemas.post import EditProps, FormProps, IndexProps, PostForm, ShowProps
from postdesk.services.post_service import post_service
from postdesk.views.page import PageRenderer, get_renderer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])

# Route name → form page to re-render when that route's submission is invalid
FORM_PAGES = {
    "posts.store": "posts/create",
    "posts.update": "posts/edit",
}


async def read_submission(request: Request) -> Dict[str, Any]:
    """
    Raw submitted fields from a JSON body or an HTML form post.

    Malformed or non-object JSON yields an empty mapping, which then fails
    validation as missing fields rather than as a server error.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            logger.info("Ignoring malformed JSON body on %s", request.url.path)
            return {}
        return data if isinstance(data, dict) else {}

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def redirect_to_index(request: Request) -> RedirectResponse:
    return RedirectResponse(
        url=request.app.state.route_table.url("posts.index"),
        status_code=303,
    )


@router.get("/", include_in_schema=False)
async def home(request: Request) -> RedirectResponse:
    return RedirectResponse(url=request.app.state.route_table.url("posts.index"), status_code=302)


@router.get(
    "/posts",
    name="posts.index",
    response_class=HTMLResponse,
    summary="List all posts",
)
async def index(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    renderer: PageRenderer = Depends(get_renderer),
) -> Response:
    posts = await post_service.list_posts(db)
    return renderer.page(request, "posts/index", IndexProps(posts=posts))


@router.get(
    "/posts/create",
    name="posts.create",
    response_class=HTMLResponse,
    summary="Empty post form",
)
async def create(
    request: Request,
    renderer: PageRenderer = Depends(get_renderer),
) -> Response:
    return renderer.page(request, "posts/create", FormProps())


@router.post(
    "/posts",
    name="posts.store",
    status_code=303,
    summary="Create a post",
)
async def store(
    request: Request,
    submission: Dict[str, Any] = Depends(read_submission),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    form = PostForm.from_submission(submission)
    await post_service.create_post(db, form)
    return redirect_to_index(request)


@router.get(
    "/posts/{post_id:int}",
    name="posts.show",
    response_class=HTMLResponse,
    summary="Show a single post",
)
async def show(
    request: Request,
    post_id: int,
    db: AsyncSession = Depends(get_db_session),
    renderer: PageRenderer = Depends(get_renderer),
) -> Response:
    post = await post_service.get_post(db, post_id)
    return renderer.page(request, "posts/show", ShowProps(post=post))


@router.get(
    "/posts/{post_id:int}/edit",
    name="posts.edit",
    response_class=HTMLResponse,
    summary="Post form seeded with the stored values",
)
async def edit(
    request: Request,
    post_id: int,
    db: AsyncSession = Depends(get_db_session),
    renderer: PageRenderer = Depends(get_renderer),
) -> Response:
    post = await post_service.get_post(db, post_id)
    return renderer.page(request, "posts/edit", EditProps(post=post))


@router.api_route(
    "/posts/{post_id:int}",
    methods=["PUT", "PATCH"],
    name="posts.update",
    status_code=303,
    summary="Replace a post's title and content",
)
async def update(
    request: Request,
    post_id: int,
    submission: Dict[str, Any] = Depends(read_submission),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    # 404 takes precedence over validation; the loaded post seeds the
    # re-rendered edit page if validation fails
    request.state.post = await post_service.get_post(db, post_id)
    form = PostForm.from_submission(submission)
    await post_service.update_post(db, post_id, form)
    return redirect_to_index(request)


@router.delete(
    "/posts/{post_id:int}",
    name="posts.destroy",
    status_code=303,
    summary="Permanently delete a post",
)
async def destroy(
    request: Request,
    post_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    await post_service.delete_post(db, post_id)
    return redirect_to_index(request)
