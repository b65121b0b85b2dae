"""
Comment persistence (raw SQL). Comment reads come back with the author
summary joined in.
"""

from __future__ import annotations

from typing import Any

from core import db

_COMMENT_SELECT = """
SELECT
  c.id,
  c.post_id,
  c.text,
  c.created_at,
  c.updated_at,
  u.id AS author_id,
  u.name AS author_name,
  u.profile_picture AS author_profile_picture
FROM comments c
JOIN users u ON u.id = c.author_id
"""


async def list_comments(post_id: int, *, limit: int = 200, offset: int = 0) -> list[dict[str, Any]]:
    return await db.fetch_all(
        _COMMENT_SELECT
        + """
        WHERE c.post_id = $1
        ORDER BY c.created_at ASC, c.id ASC
        LIMIT $2
        OFFSET $3
        """,
        post_id,
        limit,
        offset,
    )


async def get_comment(comment_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        _COMMENT_SELECT
        + """
        WHERE c.id = $1
        """,
        comment_id,
    )


async def create_comment(*, post_id: int, author_id: int, text: str) -> int:
    row = await db.fetch_one(
        """
        INSERT INTO comments (post_id, author_id, text)
        VALUES ($1, $2, $3)
        RETURNING id
        """,
        post_id,
        author_id,
        text,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert comment.")
    return int(row["id"])


async def delete_comment(comment_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM comments
        WHERE id = $1
        RETURNING id
        """,
        comment_id,
    )
    return row is not None
