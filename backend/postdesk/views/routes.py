"""
PostDesk — Named Route Table
==============================

What:  An explicit name → path-template mapping (e.g. "posts.edit" →
       "/posts/{post_id}/edit") with URL generation.
How:   Built once from the application's routes in create_app(), stored on
       app.state, passed to templates and shipped inside every page payload so
       clients resolve the same names without a global helper.
"""

import re
from typing import Any, Dict, Iterable, Mapping
from urllib.parse import quote, urlencode

from starlette.routing import BaseRoute

_PARAM = re.compile(r"\{(\w+)(?::\w+)?\}")


class RouteTable:
    """Immutable mapping of route names to path templates."""

    def __init__(self, paths: Mapping[str, str]):
        self._paths: Dict[str, str] = dict(paths)

    @classmethod
    def from_routes(cls, routes: Iterable[BaseRoute]) -> "RouteTable":
        paths: Dict[str, str] = {}
        for route in routes:
            name = getattr(route, "name", None)
            path_format = getattr(route, "path_format", None)
            if not name or path_format is None:
                continue
            # PUT and PATCH share "posts.update"; both map to the same path
            paths.setdefault(name, path_format)
        return cls(paths)

    def url(self, name: str, **params: Any) -> str:
        """
        Build the path for a named route.

        Path parameters are substituted; any remaining keyword arguments
        become the query string.

        Raises:
            LookupError: unknown route name or a missing path parameter
        """
        try:
            template = self._paths[name]
        except KeyError:
            raise LookupError(f"Route '{name}' is not defined") from None

        required = _PARAM.findall(template)
        missing = [param for param in required if param not in params]
        if missing:
            raise LookupError(
                f"Route '{name}' requires parameter(s): {', '.join(missing)}"
            )

        path = _PARAM.sub(lambda m: _quote_param(m.group(1), params[m.group(1)]), template)
        query = {key: value for key, value in params.items() if key not in required}
        if query:
            path = f"{path}?{urlencode(query)}"
        return path

    def has(self, name: str) -> bool:
        return name in self._paths

    def as_dict(self) -> Dict[str, str]:
        return dict(self._paths)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RouteTable) and other._paths == self._paths

    def __repr__(self) -> str:
        return f"<RouteTable({len(self._paths)} routes)>"


def _quote_param(name: str, value: Any) -> str:
    # Mounted file paths ("static" route) keep their slashes
    return quote(str(value), safe="/" if name == "path" else "")
