"""
Post data access with hand-written SQL through the statement client.

Reads use named parameters, writes use positional ones; both go through the
same binding rules. Mutations return the affected-row count and leave the
"nothing changed" decision to the caller.
"""

import logging

from blogdata.domain.post import POST_METADATA, Post
from blogdata.sql.client import StatementClient
from blogdata.sql.row_mapper import RowMapper

logger = logging.getLogger(__name__)

_SELECT = "SELECT id,title,slug,date,time_to_read,tags,version FROM post"


class PostService:
    def __init__(self, client: StatementClient | None = None) -> None:
        self._client = client or StatementClient()
        self._mapper = RowMapper(POST_METADATA)

    def find_all(self) -> list[Post]:
        return self._client.sql(_SELECT).query(self._mapper).list()

    def find_by_id(self, post_id: str) -> Post | None:
        return (
            self._client.sql(f"{_SELECT} WHERE id = :id")
            .param("id", post_id)
            .query(self._mapper)
            .optional()
        )

    def create(self, post: Post) -> int:
        """Insert a post at version 0."""
        affected = (
            self._client.sql(
                "INSERT INTO post(id,title,slug,date,time_to_read,tags,version) "
                "values(?,?,?,?,?,?,?)"
            )
            .params([post.id, post.title, post.slug, post.date, post.time_to_read, post.tags, 0])
            .update()
        )
        logger.info(f"Created post {post.id}")
        return affected

    def update(self, post: Post, post_id: str) -> int:
        """
        Overwrite the post stored under `post_id` and bump its version.

        When `post.version` is set the update only applies if it is still the
        stored version; a zero count then means a concurrent change.
        """
        sql = (
            "update post set title = ?, slug = ?, date = ?, time_to_read = ?, tags = ?, "
            "version = COALESCE(version, 0) + 1 where id = ?"
        )
        params = [post.title, post.slug, post.date, post.time_to_read, post.tags, post_id]
        if post.version is not None:
            sql += " and COALESCE(version, 0) = ?"
            params.append(post.version)

        affected = self._client.sql(sql).params(params).update()
        logger.info(f"Updated {affected} post(s) with id {post_id}")
        return affected

    def delete(self, post_id: str) -> int:
        affected = self._client.sql("delete from post where id = :id").param("id", post_id).update()
        logger.info(f"Deleted {affected} post(s) with id {post_id}")
        return affected
