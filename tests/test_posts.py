"""Tests for the post feed."""

from uuid import uuid4


async def test_create_post_and_feed_order(client, make_profile):
    alice = await make_profile("Dr. Alice")

    first = await client.post("/api/v1/posts", headers=alice["headers"], json={"content": "First"})
    second = await client.post(
        "/api/v1/posts", headers=alice["headers"], json={"content": "  Second  "}
    )

    assert first.status_code == 201
    assert second.json()["content"] == "Second"
    assert second.json()["author"]["full_name"] == "Dr. Alice"

    feed = await client.get("/api/v1/posts", headers=alice["headers"])
    assert [p["content"] for p in feed.json()] == ["Second", "First"]

    page = await client.get("/api/v1/posts?limit=1&offset=1", headers=alice["headers"])
    assert [p["content"] for p in page.json()] == ["First"]


async def test_like_toggles(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()
    post = (
        await client.post("/api/v1/posts", headers=alice["headers"], json={"content": "Hi"})
    ).json()
    url = f"/api/v1/posts/{post['id']}"

    liked = await client.post(f"{url}/like", headers=bob["headers"])
    assert liked.json() == {"post_id": post["id"], "liked": True, "like_count": 1}

    seen_by_bob = await client.get(url, headers=bob["headers"])
    assert seen_by_bob.json()["liked_by_me"] is True
    seen_by_alice = await client.get(url, headers=alice["headers"])
    assert seen_by_alice.json()["liked_by_me"] is False

    unliked = await client.post(f"{url}/like", headers=bob["headers"])
    assert unliked.json()["liked"] is False
    assert unliked.json()["like_count"] == 0


async def test_comments(client, make_profile):
    alice = await make_profile()
    bob = await make_profile("Nurse Bob")
    post = (
        await client.post("/api/v1/posts", headers=alice["headers"], json={"content": "Hi"})
    ).json()
    url = f"/api/v1/posts/{post['id']}"

    added = await client.post(f"{url}/comments", headers=bob["headers"], json={"content": "Nice"})
    assert added.status_code == 201
    assert added.json()["author"]["full_name"] == "Nurse Bob"

    listed = await client.get(f"{url}/comments", headers=alice["headers"])
    assert [c["content"] for c in listed.json()] == ["Nice"]

    counted = await client.get(url, headers=alice["headers"])
    assert counted.json()["comment_count"] == 1

    blank = await client.post(f"{url}/comments", headers=bob["headers"], json={"content": "  "})
    assert blank.status_code == 422


async def test_only_author_deletes_post(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()
    post = (
        await client.post("/api/v1/posts", headers=alice["headers"], json={"content": "Hi"})
    ).json()
    url = f"/api/v1/posts/{post['id']}"

    assert (await client.delete(url, headers=bob["headers"])).status_code == 403
    assert (await client.delete(url, headers=alice["headers"])).status_code == 204
    assert (await client.get(url, headers=alice["headers"])).status_code == 404


async def test_missing_post(client, make_profile):
    alice = await make_profile()

    response = await client.post(f"/api/v1/posts/{uuid4()}/like", headers=alice["headers"])

    assert response.status_code == 404
