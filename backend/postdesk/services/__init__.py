# Services package init
"""
PostDesk — Services Layer
===========================

What:  Business logic between the routes (HTTP) and the repository (SQL).
How:   Services take validated forms and ids, call the repository, turn
       missing rows into NotFoundError and driver failures into DatabaseError,
       and return PostResponse schemas.

Service Inventory:
    - PostService: list, get, create, update and delete posts
"""
