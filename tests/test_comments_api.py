import pytest


@pytest.fixture
def post(client, alice):
    return client.post("/posts", data={"text": "a post"}, headers=alice["headers"]).json()["data"]["post"]


def test_add_and_list_comments(client, alice, bob, post):
    url = f"/posts/{post['id']}/comments"
    first = client.post(url, json={"text": "  first!  "}, headers=bob["headers"])
    assert first.status_code == 201
    comment = first.json()["data"]["comment"]
    assert comment["text"] == "first!"
    assert comment["author"] == {"id": bob["user"]["id"], "name": "Bob", "profile_picture": None}

    client.post(url, json={"text": "second"}, headers=alice["headers"])

    listed = client.get(url).json()["data"]
    assert [c["text"] for c in listed["comments"]] == ["first!", "second"]
    assert listed["count"] == 2

    feed_post = client.get(f"/posts/{post['id']}").json()["data"]["post"]
    assert feed_post["comment_count"] == 2


def test_comment_validation(client, bob, post):
    url = f"/posts/{post['id']}/comments"
    assert client.post(url, json={"text": "   "}, headers=bob["headers"]).status_code == 400
    assert client.post(url, json={"text": "x" * 1001}, headers=bob["headers"]).status_code == 400
    assert client.post(url, json={"text": "hi"}).status_code == 401


def test_comments_on_unknown_post(client, bob):
    assert client.get("/posts/9999/comments").status_code == 404
    r = client.post("/posts/9999/comments", json={"text": "hi"}, headers=bob["headers"])
    assert r.status_code == 404


def test_delete_comment_permissions(client, register, alice, bob, post):
    carol = register("Carol", "carol@example.com")
    url = f"/posts/{post['id']}/comments"
    by_bob = client.post(url, json={"text": "bob says"}, headers=bob["headers"]).json()["data"]["comment"]
    by_carol = client.post(url, json={"text": "carol says"}, headers=carol["headers"]).json()["data"]["comment"]

    # Carol is neither the comment author nor the post author.
    assert client.delete(f"{url}/{by_bob['id']}", headers=carol["headers"]).status_code == 403

    own = client.delete(f"{url}/{by_bob['id']}", headers=bob["headers"])
    assert own.status_code == 200
    assert own.json()["data"] == {"comment_id": by_bob["id"]}

    # The post author can moderate comments on their post.
    assert client.delete(f"{url}/{by_carol['id']}", headers=alice["headers"]).status_code == 200
    assert client.get(url).json()["data"]["comments"] == []


def test_delete_comment_wrong_post(client, alice, bob, post):
    other = client.post("/posts", data={"text": "other"}, headers=alice["headers"]).json()["data"]["post"]
    comment = client.post(
        f"/posts/{post['id']}/comments", json={"text": "hi"}, headers=bob["headers"]
    ).json()["data"]["comment"]

    r = client.delete(f"/posts/{other['id']}/comments/{comment['id']}", headers=bob["headers"])
    assert r.status_code == 404


def test_comment_length_counts_trimmed_text(client, bob, post):
    url = f"/posts/{post['id']}/comments"
    r = client.post(url, json={"text": "x" * 1000 + "  \n"}, headers=bob["headers"])
    assert r.status_code == 201
    assert r.json()["data"]["comment"]["text"] == "x" * 1000

    too_long = client.post(url, json={"text": " " + "x" * 1001}, headers=bob["headers"])
    assert too_long.status_code == 400
    assert too_long.json()["errors"][0]["field"] == "text"
