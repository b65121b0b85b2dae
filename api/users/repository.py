"""
Profile persistence (raw SQL).
"""

from __future__ import annotations

from auth.repository import USER_COLUMNS
from core import db


async def update_profile(user_id: int, *, name: str | None, bio: str | None) -> dict | None:
    """
    Update name and/or bio; a NULL argument leaves the column unchanged.
    """
    return await db.fetch_one(
        f"""
        UPDATE users
        SET name = COALESCE($2, name),
            bio = COALESCE($3, bio),
            updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        name,
        bio,
    )


async def set_profile_picture(user_id: int, data_url: str) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE users
        SET profile_picture = $2,
            updated_at = now()
        WHERE id = $1
        RETURNING {USER_COLUMNS}
        """,
        user_id,
        data_url,
    )
