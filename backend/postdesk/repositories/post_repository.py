"""Data access for the posts table."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postdesk.models.post import Post

logger = logging.getLogger(__name__)


class PostRepository:
    """
    Thin CRUD layer over the Post model.

    Every method works inside the caller's session and only flushes;
    PostService commits writes and the session dependency rolls back on error.
    """

    async def all(self, db: AsyncSession) -> List[Post]:
        # Storage order; no ordering is promised to callers beyond that
        result = await db.execute(select(Post).order_by(Post.id))
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, post_id: int) -> Optional[Post]:
        return await db.get(Post, post_id)

    async def add(self, db: AsyncSession, title: str, content: str) -> Post:
        post = Post(title=title, content=content)
        db.add(post)
        await db.flush()
        await db.refresh(post)
        logger.debug("Inserted post %s", post.id)
        return post

    async def update(self, db: AsyncSession, post: Post, title: str, content: str) -> Post:
        post.title = title
        post.content = content
        await db.flush()
        await db.refresh(post)
        return post

    async def delete(self, db: AsyncSession, post: Post) -> None:
        await db.delete(post)
        await db.flush()


post_repository = PostRepository()
