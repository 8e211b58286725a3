"""Tests for Care Team endpoints."""

from httpx import AsyncClient


async def _request(client: AsyncClient, requester: dict, receiver: dict):
    return await client.post(
        "/api/v1/care-team/requests",
        headers=requester["headers"],
        json={"receiver_id": str(receiver["id"])},
    )


async def test_request_accept_and_list_members(client, make_profile):
    alice = await make_profile("Dr. Alice")
    bob = await make_profile("Nurse Bob")

    sent = await _request(client, alice, bob)
    assert sent.status_code == 201
    relation = sent.json()
    assert relation["status"] == "pending"

    incoming = await client.get("/api/v1/care-team/requests", headers=bob["headers"])
    assert [r["requester"]["full_name"] for r in incoming.json()] == ["Dr. Alice"]

    status_before = await client.get(
        f"/api/v1/care-team/status/{bob['id']}", headers=alice["headers"]
    )
    assert status_before.json()["status"] == "pending"
    assert status_before.json()["is_requester"] is True

    accepted = await client.post(
        f"/api/v1/care-team/requests/{relation['id']}/accept", headers=bob["headers"]
    )
    assert accepted.json()["status"] == "accepted"

    alice_members = await client.get("/api/v1/care-team", headers=alice["headers"])
    bob_members = await client.get("/api/v1/care-team", headers=bob["headers"])
    assert [m["full_name"] for m in alice_members.json()] == ["Nurse Bob"]
    assert [m["full_name"] for m in bob_members.json()] == ["Dr. Alice"]


async def test_only_receiver_can_accept(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()
    relation = (await _request(client, alice, bob)).json()

    response = await client.post(
        f"/api/v1/care-team/requests/{relation['id']}/accept", headers=alice["headers"]
    )

    assert response.status_code == 403


async def test_duplicate_request_in_either_direction_conflicts(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()

    assert (await _request(client, alice, bob)).status_code == 201
    assert (await _request(client, alice, bob)).status_code == 409
    assert (await _request(client, bob, alice)).status_code == 409


async def test_request_to_self_is_rejected(client, make_profile):
    alice = await make_profile()

    assert (await _request(client, alice, alice)).status_code == 400


async def test_decline_and_remove(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()
    relation = (await _request(client, alice, bob)).json()

    declined = await client.delete(
        f"/api/v1/care-team/requests/{relation['id']}", headers=bob["headers"]
    )
    assert declined.status_code == 204

    status_after = await client.get(
        f"/api/v1/care-team/status/{bob['id']}", headers=alice["headers"]
    )
    assert status_after.json()["status"] is None

    relation = (await _request(client, alice, bob)).json()
    await client.post(f"/api/v1/care-team/requests/{relation['id']}/accept", headers=bob["headers"])

    removed = await client.delete(f"/api/v1/care-team/members/{bob['id']}", headers=alice["headers"])
    assert removed.status_code == 204
    again = await client.delete(f"/api/v1/care-team/members/{bob['id']}", headers=alice["headers"])
    assert again.status_code == 404


async def test_suggestions_exclude_self_and_related(client, make_profile):
    alice = await make_profile()
    bob = await make_profile()
    carol = await make_profile("Carol")
    await make_profile(account_status="deactivated")
    await _request(client, alice, bob)

    response = await client.get("/api/v1/care-team/suggestions", headers=alice["headers"])

    assert [p["id"] for p in response.json()] == [str(carol["id"])]
