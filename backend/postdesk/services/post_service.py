"""
PostDesk — Post Service (Business Logic)
==========================================

What:  List, fetch, create, update and delete posts.
How:   Delegates persistence to PostRepository, converts missing rows into
       NotFoundError and driver failures into DatabaseError, and returns
       PostResponse schemas rather than ORM objects.
Who:   Called by the route handlers in routes/posts.py.

Error Handling Strategy:
    NotFoundError propagates as-is (→ 404). Any SQLAlchemyError is logged with
    its context and re-raised as DatabaseError with a generic message (→ 500).
    Each call touches exactly one row, so there is no partial-failure case.

Writes commit before returning, so the GET that follows the 303 redirect
always sees them.
"""

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postdesk.exceptions import DatabaseError, NotFoundError
from postdesk.models.post import Post
from postdesk.repositories.post_repository import PostRepository, post_repository
from postdesk.schemas.post import PostForm, PostResponse

logger = logging.getLogger(__name__)


class PostService:
    """
    Business logic layer for post operations.

    Stateless: the session is passed into every call, so one instance serves
    all requests.
    """

    def __init__(self, repository: PostRepository = post_repository):
        self.repository = repository

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """Return every post; an empty list is a valid result."""
        try:
            posts = await self.repository.all(db)
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve posts. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return [PostResponse.model_validate(post) for post in posts]

    async def get_post(self, db: AsyncSession, post_id: int) -> PostResponse:
        """
        Retrieve a single post by id.

        Raises:
            NotFoundError: no post with that id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        post = await self._load(db, post_id)
        return PostResponse.model_validate(post)

    async def create_post(self, db: AsyncSession, form: PostForm) -> PostResponse:
        """Persist a new post; the database assigns id and timestamps."""
        try:
            post = await self.repository.add(db, title=form.title, content=form.content)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating post: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the post. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        logger.info("Post %s created", post.id)
        return PostResponse.model_validate(post)

    async def update_post(
        self, db: AsyncSession, post_id: int, form: PostForm
    ) -> PostResponse:
        """
        Replace title and content of an existing post.

        Concurrent updates are not coordinated; the last write wins.
        """
        post = await self._load(db, post_id)
        try:
            post = await self.repository.update(
                db, post, title=form.title, content=form.content
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error updating post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the post. Please try again.",
                context={"post_id": post_id, "error_type": type(e).__name__},
            ) from e
        logger.info("Post %s updated", post_id)
        return PostResponse.model_validate(post)

    async def delete_post(self, db: AsyncSession, post_id: int) -> None:
        """Permanently remove a post. Deleting a missing id raises NotFoundError."""
        post = await self._load(db, post_id)
        try:
            await self.repository.delete(db, post)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting post %s: %s", post_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the post. Please try again.",
                context={"post_id": post_id, "error_type": type(e).__name__},
            ) from e
        logger.info("Post %s deleted", post_id)

    async def _load(self, db: AsyncSession, post_id: int) -> Post:
        try:
            post = await self.repository.get(db, post_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching post %s: %s", post_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the post. Please try again.",
                context={"post_id": post_id},
            ) from e
        if post is None:
            raise NotFoundError(resource="post", resource_id=str(post_id))
        return post


post_service = PostService()
