"""
Post and like persistence (raw SQL).

Every post read is "populated": the author summary, the liker ids and the
comment count come back on the same row.
"""

from __future__ import annotations

from typing import Any

from core import db

_POST_SELECT = """
SELECT
  p.id,
  p.text,
  p.images,
  p.created_at,
  p.updated_at,
  u.id AS author_id,
  u.name AS author_name,
  u.email AS author_email,
  u.profile_picture AS author_profile_picture,
  COALESCE(likes.user_ids, ARRAY[]::bigint[]) AS likes,
  COALESCE(comment_stats.comment_count, 0) AS comment_count
FROM posts p
JOIN users u ON u.id = p.author_id
LEFT JOIN LATERAL (
  SELECT array_agg(pl.user_id ORDER BY pl.created_at, pl.user_id) AS user_ids
  FROM post_likes pl
  WHERE pl.post_id = p.id
) likes ON true
LEFT JOIN LATERAL (
  SELECT count(*) AS comment_count
  FROM comments c
  WHERE c.post_id = p.id
) comment_stats ON true
"""


async def list_posts(*, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
    return await db.fetch_all(
        _POST_SELECT
        + """
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT $1
        OFFSET $2
        """,
        limit,
        offset,
    )


async def list_posts_by_author(author_id: int, *, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
    return await db.fetch_all(
        _POST_SELECT
        + """
        WHERE p.author_id = $1
        ORDER BY p.created_at DESC, p.id DESC
        LIMIT $2
        OFFSET $3
        """,
        author_id,
        limit,
        offset,
    )


async def count_posts_by_author(author_id: int) -> int:
    row = await db.fetch_one(
        "SELECT count(*) AS n FROM posts WHERE author_id = $1",
        author_id,
    )
    return int((row or {}).get("n", 0))


async def get_post(post_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        _POST_SELECT
        + """
        WHERE p.id = $1
        """,
        post_id,
    )


async def create_post(*, author_id: int, text: str, images: list[str]) -> int:
    row = await db.fetch_one(
        """
        INSERT INTO posts (author_id, text, images)
        VALUES ($1, $2, $3::text[])
        RETURNING id
        """,
        author_id,
        text,
        images,
    )
    if row is None or "id" not in row:
        raise RuntimeError("Failed to insert post.")
    return int(row["id"])


async def update_post(post_id: int, *, text: str, images: list[str]) -> bool:
    row = await db.fetch_one(
        """
        UPDATE posts
        SET text = $2,
            images = $3::text[],
            updated_at = now()
        WHERE id = $1
        RETURNING id
        """,
        post_id,
        text,
        images,
    )
    return row is not None


async def delete_post(post_id: int) -> bool:
    """
    Likes and comments go with the post (ON DELETE CASCADE).
    """
    row = await db.fetch_one(
        """
        DELETE FROM posts
        WHERE id = $1
        RETURNING id
        """,
        post_id,
    )
    return row is not None


async def toggle_like(post_id: int, *, user_id: int) -> bool:
    """
    Flip the (post, user) membership. Returns True when the post is now liked.
    """
    async with db.transaction() as conn:
        removed = await conn.fetchrow(
            """
            DELETE FROM post_likes
            WHERE post_id = $1
              AND user_id = $2
            RETURNING post_id
            """,
            post_id,
            user_id,
        )
        if removed is not None:
            return False

        await conn.execute(
            """
            INSERT INTO post_likes (post_id, user_id)
            VALUES ($1, $2)
            ON CONFLICT (post_id, user_id) DO NOTHING
            """,
            post_id,
            user_id,
        )
        return True


async def set_like(post_id: int, *, user_id: int, liked: bool) -> None:
    if liked:
        await db.execute(
            """
            INSERT INTO post_likes (post_id, user_id)
            VALUES ($1, $2)
            ON CONFLICT (post_id, user_id) DO NOTHING
            """,
            post_id,
            user_id,
        )
        return

    await db.execute(
        """
        DELETE FROM post_likes
        WHERE post_id = $1
          AND user_id = $2
        """,
        post_id,
        user_id,
    )


async def list_likes(post_id: int) -> list[int]:
    rows = await db.fetch_all(
        """
        SELECT user_id
        FROM post_likes
        WHERE post_id = $1
        ORDER BY created_at, user_id
        """,
        post_id,
    )
    return [int(r["user_id"]) for r in rows]
