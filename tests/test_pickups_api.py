import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.anyio


async def _create(ac: AsyncClient, headers: dict, payload: dict) -> dict:
    r = await ac.post("/api/pickups", headers=headers, json=payload)
    assert r.status_code == 201, r.text
    return r.json()


async def test_end_to_end(test_client: AsyncClient, bearer, requester, agent, other_agent, pickup_payload, sink):
    created = await _create(test_client, bearer(requester), pickup_payload)
    assert created["status"] == "pending"
    assert created["owner_id"] == requester.id
    pid = created["id"]

    r = await test_client.put(f"/api/pickups/{pid}", headers=bearer(agent), json={"action": "claim"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "assigned"
    assert r.json()["assigned_agent_id"] == agent.id

    # a late competing claim loses
    r = await test_client.put(f"/api/pickups/{pid}", headers=bearer(other_agent), json={"action": "claim"})
    assert r.status_code == 409
    assert r.json()["kind"] == "IllegalTransition"

    r = await test_client.put(f"/api/pickups/{pid}", headers=bearer(agent), json={"action": "start"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "in-progress"

    r = await test_client.put(f"/api/pickups/{pid}", headers=bearer(agent),
                              json={"action": "complete", "closing_note": "Picked up"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "completed"
    assert r.json()["closing_note"] == "Picked up"

    r = await test_client.post(f"/api/pickups/{pid}/feedback", headers=bearer(requester), json={"rating": 5})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["feedback"]["rating"] == 5
    assert body["assigned_agent_id"] == agent.id
    assert [h["to_status"] for h in body["history"]] == ["pending", "assigned", "in-progress", "completed"]

    assert sink.types() == [
        "pickup.created",
        "pickup.status.changed",
        "pickup.status.changed",
        "pickup.status.changed",
        "pickup.feedback.submitted",
    ]


async def test_missing_and_invalid_credentials(test_client: AsyncClient, pickup_payload):
    r = await test_client.get("/api/pickups")
    assert r.status_code == 401
    assert r.json()["kind"] == "MissingCredential"

    r = await test_client.post("/api/pickups", json=pickup_payload,
                               headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401
    assert r.json()["kind"] == "InvalidCredential"


async def test_role_gates(test_client: AsyncClient, bearer, requester, agent, pickup_payload):
    r = await test_client.post("/api/pickups", headers=bearer(agent), json=pickup_payload)
    assert r.status_code == 403
    assert r.json()["kind"] == "Forbidden"

    r = await test_client.get("/api/pickups/available", headers=bearer(requester))
    assert r.status_code == 403

    r = await test_client.get("/api/pickups/accepted", headers=bearer(requester))
    assert r.status_code == 403

    created = await _create(test_client, bearer(requester), pickup_payload)
    r = await test_client.put(f"/api/pickups/{created['id']}", headers=bearer(requester), json={"action": "claim"})
    assert r.status_code == 403
    r = await test_client.post(f"/api/pickups/{created['id']}/feedback", headers=bearer(agent), json={"rating": 3})
    assert r.status_code == 403


async def test_validation_errors(test_client: AsyncClient, bearer, requester, pickup_payload):
    pickup_payload["items"] = []
    r = await test_client.post("/api/pickups", headers=bearer(requester), json=pickup_payload)
    assert r.status_code == 400
    assert r.json() == {"kind": "ValidationError", "message": "items: At least one item is required"}

    pickup_payload["items"] = [{"category": "tv", "quantity": 0}]
    r = await test_client.post("/api/pickups", headers=bearer(requester), json=pickup_payload)
    assert r.status_code == 400
    assert r.json()["message"].startswith("items.0.quantity:")


async def test_bad_change_body(test_client: AsyncClient, bearer, requester, agent, pickup_payload):
    created = await _create(test_client, bearer(requester), pickup_payload)
    r = await test_client.put(f"/api/pickups/{created['id']}", headers=bearer(agent),
                              json={"action": "claim", "status": "completed"})
    assert r.status_code == 400
    assert r.json()["kind"] == "ValidationError"


async def test_listings_and_reads(test_client: AsyncClient, bearer, requester, other_requester, agent,
                                  other_agent, pickup_payload):
    mine = await _create(test_client, bearer(requester), pickup_payload)
    theirs = await _create(test_client, bearer(other_requester), pickup_payload)

    r = await test_client.get("/api/pickups", headers=bearer(requester))
    assert [p["id"] for p in r.json()] == [mine["id"]]

    r = await test_client.get("/api/pickups/available", headers=bearer(agent))
    assert {p["id"] for p in r.json()} == {mine["id"], theirs["id"]}

    r = await test_client.get(f"/api/pickups/{theirs['id']}", headers=bearer(requester))
    assert r.status_code == 403

    await test_client.put(f"/api/pickups/{mine['id']}", headers=bearer(agent), json={"action": "claim"})
    r = await test_client.get("/api/pickups/accepted", headers=bearer(agent))
    assert [p["id"] for p in r.json()] == [mine["id"]]

    r = await test_client.get(f"/api/pickups/{mine['id']}", headers=bearer(agent))
    assert r.status_code == 200
    r = await test_client.get(f"/api/pickups/{mine['id']}", headers=bearer(other_agent))
    assert r.status_code == 403

    r = await test_client.get("/api/pickups/does-not-exist", headers=bearer(requester))
    assert r.status_code == 404
    assert r.json()["kind"] == "NotFound"


async def test_feedback_gating(test_client: AsyncClient, bearer, requester, other_requester, agent, pickup_payload):
    created = await _create(test_client, bearer(requester), pickup_payload)
    pid = created["id"]

    r = await test_client.post(f"/api/pickups/{pid}/feedback", headers=bearer(requester), json={"rating": 4})
    assert r.status_code == 409
    assert r.json()["kind"] == "IllegalTransition"

    await test_client.put(f"/api/pickups/{pid}", headers=bearer(agent), json={"action": "claim"})
    await test_client.put(f"/api/pickups/{pid}", headers=bearer(agent), json={"action": "complete"})

    r = await test_client.post(f"/api/pickups/{pid}/feedback", headers=bearer(other_requester), json={"rating": 4})
    assert r.status_code == 403

    r = await test_client.post(f"/api/pickups/{pid}/feedback", headers=bearer(requester), json={"rating": 9})
    assert r.status_code == 400

    r = await test_client.post(f"/api/pickups/{pid}/feedback", headers=bearer(requester),
                               json={"rating": 4, "stars": 4})
    assert r.status_code == 400
    assert r.json()["kind"] == "ValidationError"


async def test_cancel(test_client: AsyncClient, bearer, requester, agent, pickup_payload):
    created = await _create(test_client, bearer(requester), pickup_payload)
    r = await test_client.put(f"/api/pickups/{created['id']}", headers=bearer(requester),
                              json={"action": "cancel", "reason": "Changed my mind"})
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "cancelled"

    r = await test_client.put(f"/api/pickups/{created['id']}", headers=bearer(agent), json={"action": "claim"})
    assert r.status_code == 409


async def test_admin_listing(test_client: AsyncClient, bearer, requester, agent, admin, pickup_payload):
    created = await _create(test_client, bearer(requester), pickup_payload)
    r = await test_client.get("/api/admin/pickups", headers=bearer(admin))
    assert [p["id"] for p in r.json()] == [created["id"]]

    r = await test_client.get("/api/admin/pickups", params={"status": "completed"}, headers=bearer(admin))
    assert r.json() == []

    r = await test_client.get("/api/admin/pickups", headers=bearer(agent))
    assert r.status_code == 403

    r = await test_client.get("/api/admin/pickups", params={"status": "lost"}, headers=bearer(admin))
    assert r.status_code == 400


async def test_health(test_client: AsyncClient):
    r = await test_client.get("/health")
    assert r.json() == {"ok": True}
