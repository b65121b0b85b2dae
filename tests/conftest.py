"""
Shared fixtures.

The repositories are swapped for an in-memory store so the API can be
exercised end to end without a Postgres instance.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth import repository as auth_repository
from comments import repository as comment_repository
from posts import repository as post_repository
from users import repository as user_repository

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x01" * 32

_PUBLIC_USER_KEYS = ("id", "name", "email", "bio", "profile_picture", "is_active", "created_at", "updated_at")


class InMemoryStore:
    def __init__(self) -> None:
        self.users: dict[int, dict] = {}
        self.refresh_tokens: dict[int, dict] = {}
        self.posts: dict[int, dict] = {}
        self.likes: dict[int, list[int]] = {}
        self.comments: dict[int, dict] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        return self._epoch + timedelta(seconds=next(self._clock))

    def _public_user(self, row: dict) -> dict:
        return {k: row[k] for k in _PUBLIC_USER_KEYS}

    # users / auth

    async def create_user(self, *, name, email, password_hash, bio="", is_active=True):
        now = self._now()
        user_id = next(self._ids)
        self.users[user_id] = {
            "id": user_id,
            "name": name,
            "email": auth_repository.normalize_email(email),
            "password_hash": password_hash,
            "bio": bio,
            "profile_picture": None,
            "is_active": is_active,
            "created_at": now,
            "updated_at": now,
        }
        return self._public_user(self.users[user_id])

    async def get_user_by_email(self, email):
        email = auth_repository.normalize_email(email)
        for row in self.users.values():
            if row["email"] == email:
                return dict(row)
        return None

    async def get_user_by_id(self, user_id):
        row = self.users.get(user_id)
        return self._public_user(row) if row else None

    async def update_profile(self, user_id, *, name, bio):
        row = self.users.get(user_id)
        if row is None:
            return None
        if name is not None:
            row["name"] = name
        if bio is not None:
            row["bio"] = bio
        row["updated_at"] = self._now()
        return self._public_user(row)

    async def set_profile_picture(self, user_id, data_url):
        row = self.users.get(user_id)
        if row is None:
            return None
        row["profile_picture"] = data_url
        return self._public_user(row)

    async def insert_refresh_token(self, *, user_id, token_hash, expires_at, user_agent=None, ip_address=None):
        token_id = next(self._ids)
        self.refresh_tokens[token_id] = {
            "id": token_id,
            "user_id": user_id,
            "token_hash": token_hash,
            "expires_at": expires_at,
            "revoked_at": None,
            "replaced_by_token_id": None,
            "created_at": self._now(),
            "last_used_at": None,
        }
        return dict(self.refresh_tokens[token_id])

    async def get_refresh_token_by_hash(self, token_hash):
        for row in self.refresh_tokens.values():
            if row["token_hash"] == token_hash:
                return dict(row)
        return None

    async def rotate_refresh_token(self, *, old_token_id, user_id, token_hash, expires_at, user_agent=None, ip_address=None):
        row = self.refresh_tokens.get(old_token_id)
        if row is None or row["revoked_at"] is not None:
            return None
        row["revoked_at"] = row["last_used_at"] = self._now()
        new_row = await self.insert_refresh_token(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            user_agent=user_agent,
            ip_address=ip_address,
        )
        row["replaced_by_token_id"] = new_row["id"]
        return new_row

    async def revoke_refresh_token_by_hash(self, token_hash, *, user_id=None):
        for row in self.refresh_tokens.values():
            if row["token_hash"] != token_hash or row["revoked_at"] is not None:
                continue
            if user_id is not None and row["user_id"] != user_id:
                continue
            row["revoked_at"] = self._now()
            return True
        return False

    async def revoke_refresh_token_by_id(self, token_id):
        row = self.refresh_tokens.get(token_id)
        if row is None or row["revoked_at"] is not None:
            return False
        row["revoked_at"] = self._now()
        return True

    async def revoke_all_refresh_tokens_for_user(self, user_id):
        for row in self.refresh_tokens.values():
            if row["user_id"] == user_id and row["revoked_at"] is None:
                row["revoked_at"] = self._now()

    # posts / likes

    def _post_row(self, post: dict) -> dict:
        author = self.users[post["author_id"]]
        return {
            "id": post["id"],
            "text": post["text"],
            "images": list(post["images"]),
            "created_at": post["created_at"],
            "updated_at": post["updated_at"],
            "author_id": author["id"],
            "author_name": author["name"],
            "author_email": author["email"],
            "author_profile_picture": author["profile_picture"],
            "likes": list(self.likes.get(post["id"], [])),
            "comment_count": sum(1 for c in self.comments.values() if c["post_id"] == post["id"]),
        }

    def _newest_first(self, posts):
        return sorted(posts, key=lambda p: (p["created_at"], p["id"]), reverse=True)

    async def list_posts(self, *, limit=50, offset=0):
        posts = self._newest_first(self.posts.values())
        return [self._post_row(p) for p in posts[offset : offset + limit]]

    async def list_posts_by_author(self, author_id, *, limit=50, offset=0):
        posts = self._newest_first(p for p in self.posts.values() if p["author_id"] == author_id)
        return [self._post_row(p) for p in posts[offset : offset + limit]]

    async def count_posts_by_author(self, author_id):
        return sum(1 for p in self.posts.values() if p["author_id"] == author_id)

    async def get_post(self, post_id):
        post = self.posts.get(post_id)
        return self._post_row(post) if post else None

    async def create_post(self, *, author_id, text, images):
        now = self._now()
        post_id = next(self._ids)
        self.posts[post_id] = {
            "id": post_id,
            "author_id": author_id,
            "text": text,
            "images": list(images),
            "created_at": now,
            "updated_at": now,
        }
        return post_id

    async def update_post(self, post_id, *, text, images):
        post = self.posts.get(post_id)
        if post is None:
            return False
        post.update(text=text, images=list(images), updated_at=self._now())
        return True

    async def delete_post(self, post_id):
        if self.posts.pop(post_id, None) is None:
            return False
        self.likes.pop(post_id, None)
        self.comments = {k: c for k, c in self.comments.items() if c["post_id"] != post_id}
        return True

    async def toggle_like(self, post_id, *, user_id):
        members = self.likes.setdefault(post_id, [])
        if user_id in members:
            members.remove(user_id)
            return False
        members.append(user_id)
        return True

    async def set_like(self, post_id, *, user_id, liked):
        members = self.likes.setdefault(post_id, [])
        if liked and user_id not in members:
            members.append(user_id)
        if not liked and user_id in members:
            members.remove(user_id)

    async def list_likes(self, post_id):
        return list(self.likes.get(post_id, []))

    # comments

    def _comment_row(self, comment: dict) -> dict:
        author = self.users[comment["author_id"]]
        return {
            **comment,
            "author_name": author["name"],
            "author_profile_picture": author["profile_picture"],
        }

    async def list_comments(self, post_id, *, limit=200, offset=0):
        rows = sorted(
            (c for c in self.comments.values() if c["post_id"] == post_id),
            key=lambda c: (c["created_at"], c["id"]),
        )
        return [self._comment_row(c) for c in rows[offset : offset + limit]]

    async def get_comment(self, comment_id):
        comment = self.comments.get(comment_id)
        return self._comment_row(comment) if comment else None

    async def create_comment(self, *, post_id, author_id, text):
        now = self._now()
        comment_id = next(self._ids)
        self.comments[comment_id] = {
            "id": comment_id,
            "post_id": post_id,
            "author_id": author_id,
            "text": text,
            "created_at": now,
            "updated_at": now,
        }
        return comment_id

    async def delete_comment(self, comment_id):
        return self.comments.pop(comment_id, None) is not None


_PATCHES = {
    auth_repository: [
        "create_user",
        "get_user_by_email",
        "get_user_by_id",
        "insert_refresh_token",
        "get_refresh_token_by_hash",
        "rotate_refresh_token",
        "revoke_refresh_token_by_hash",
        "revoke_refresh_token_by_id",
        "revoke_all_refresh_tokens_for_user",
    ],
    user_repository: ["update_profile", "set_profile_picture"],
    post_repository: [
        "list_posts",
        "list_posts_by_author",
        "count_posts_by_author",
        "get_post",
        "create_post",
        "update_post",
        "delete_post",
        "toggle_like",
        "set_like",
        "list_likes",
    ],
    comment_repository: ["list_comments", "get_comment", "create_comment", "delete_comment"],
}


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.delenv("MAX_IMAGE_BYTES", raising=False)
    monkeypatch.delenv("MAX_POST_IMAGES", raising=False)
    monkeypatch.delenv("ALLOWED_IMAGE_TYPES", raising=False)


@pytest.fixture
def store(monkeypatch) -> InMemoryStore:
    fake = InMemoryStore()
    for module, names in _PATCHES.items():
        for name in names:
            monkeypatch.setattr(module, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(store) -> TestClient:
    from main import app

    # No `with`: the lifespan (DB pool) is not started.
    return TestClient(app)


def _register(client: TestClient, name: str, email: str, password: str = "secret123", bio: str = "") -> dict:
    r = client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": password, "bio": bio},
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    data["headers"] = {"Authorization": f"Bearer {data['tokens']['access_token']}"}
    return data


@pytest.fixture
def alice(client) -> dict:
    return _register(client, "Alice Doe", "alice@example.com", bio="hi, I'm alice")


@pytest.fixture
def bob(client) -> dict:
    return _register(client, "Bob", "bob@example.com")


@pytest.fixture
def register(client):
    def _do(name: str, email: str, password: str = "secret123", bio: str = "") -> dict:
        return _register(client, name, email, password=password, bio=bio)

    return _do
