"""
PostDesk — Page Objects and Renderers
=======================================

What:  The serialization boundary between handlers and presentation.
       A handler describes its result as a Page (component name + props);
       a PageRenderer turns that into an HTTP response.
How:   NegotiatingRenderer answers with the page as JSON for single-page
       clients (X-PostDesk header, or a JSON-preferring Accept header) and with
       a Jinja2 template named after the component otherwise. The HTML carries
       the same JSON in the root element's data-page attribute for hydration.

Page object:
    {
        "component": "posts/edit",
        "props": {"post": {...}, "errors": {}, "old": {}},
        "url": "/posts/3/edit",
        "routes": {"posts.index": "/posts", ...}
    }
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field
from starlette.responses import Response

from postdesk.views.routes import RouteTable

PAGE_HEADER = "X-PostDesk"
VARY = f"{PAGE_HEADER}, Accept"


class Page(BaseModel):
    """A named view plus the data it renders."""

    component: str = Field(description="View name, e.g. 'posts/index'")
    props: Dict[str, Any] = Field(default_factory=dict)
    url: str = Field(description="Path (and query) the page was produced for")
    routes: Dict[str, str] = Field(default_factory=dict)


def wants_page_json(request: Request) -> bool:
    """True when the caller asked for the JSON page instead of HTML."""
    if request.headers.get(PAGE_HEADER, "").lower() == "true":
        return True
    accept = request.headers.get("accept", "")
    return "application/json" in accept and "text/html" not in accept


class PageRenderer(ABC):
    """
    Contract for turning a Page into a response.

    Implementations only decide the representation; status codes and the
    page content come from the caller.
    """

    @abstractmethod
    def render(self, request: Request, page: Page, status_code: int = 200) -> Response:
        ...

    def page(
        self,
        request: Request,
        component: str,
        props: Union[BaseModel, Mapping[str, Any], None] = None,
        status_code: int = 200,
    ) -> Response:
        """Build a Page for the current request and render it."""
        return self.render(request, build_page(request, component, props), status_code)


def build_page(
    request: Request,
    component: str,
    props: Union[BaseModel, Mapping[str, Any], None] = None,
) -> Page:
    if isinstance(props, BaseModel):
        data = props.model_dump(mode="json")
    else:
        data = dict(props or {})
    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"
    route_table: Optional[RouteTable] = getattr(request.app.state, "route_table", None)
    return Page(
        component=component,
        props=data,
        url=url,
        routes=route_table.as_dict() if route_table else {},
    )


class NegotiatingRenderer(PageRenderer):
    """Default renderer: JSON page for SPA clients, Jinja2 HTML for browsers."""

    def __init__(self, templates_dir: Union[str, Path]):
        self.templates = Jinja2Templates(directory=templates_dir)

    def render(self, request: Request, page: Page, status_code: int = 200) -> Response:
        if wants_page_json(request):
            return JSONResponse(
                content=page.model_dump(mode="json"),
                status_code=status_code,
                headers={PAGE_HEADER: "true", "Vary": VARY},
            )

        routes = getattr(request.app.state, "route_table", None) or RouteTable(page.routes)
        return self.templates.TemplateResponse(
            request,
            f"{page.component}.html",
            {
                "page": page.model_dump(mode="json"),
                "props": page.props,
                "routes": routes,
            },
            status_code=status_code,
            headers={"Vary": VARY},
        )


def get_renderer(request: Request) -> PageRenderer:
    """FastAPI dependency returning the renderer configured in create_app()."""
    return request.app.state.renderer
