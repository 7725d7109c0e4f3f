# Views package init
"""
PostDesk — Presentation Boundary
==================================

    - page.py:    Page objects, PageRenderer and the JSON/HTML renderer
    - routes.py:  RouteTable, the named route → path mapping shared with clients
"""
