from __future__ import annotations

import pytest
from httpx import AsyncClient

from cph.infra.schema import CollectionKey

SLUG = "lent-hack-2026"
USER = {"X-User-Id": "u1", "X-User-Email": "ann@x.com"}


def _register_body(**overrides):
    body = {
        "eventSlug": SLUG,
        "teammatePreference": "team",
        "referralSource": "parish",
        "eligibilityAgreed": True,
        "rulesAgreed": True,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_list_and_get_event(api_client: AsyncClient, seed):
    listed = await api_client.get("/events")
    assert listed.status_code == 200
    assert [event["slug"] for event in listed.json()["data"]] == [SLUG]

    await seed.registration(SLUG, "u1")
    detail = await api_client.get(f"/events/{SLUG}")
    assert detail.status_code == 200
    assert detail.json()["data"]["title"] == "Lent Hack 2026"
    assert detail.json()["stats"]["registrations"] == 1

    missing = await api_client.get("/events/nope")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Event not found"


@pytest.mark.asyncio
async def test_register_stores_snapshot(api_client: AsyncClient, docstore, seed):
    await seed.user("u1", "ann@x.com", username="ann", name="Ann")
    resp = await api_client.post("/events/register", headers=USER, json=_register_body())
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    stored = await docstore.get(seed.collection(CollectionKey.EVENT_REGISTRATIONS), f"{SLUG}_u1")
    assert stored.data["participationType"] == "TEAM"
    assert stored.data["userName"] == "Ann"
    assert stored.data["referralSource"] == "parish"


@pytest.mark.asyncio
async def test_register_validation(api_client: AsyncClient):
    unknown = await api_client.post("/events/register", headers=USER, json=_register_body(eventSlug="nope"))
    assert unknown.status_code == 404

    rules = await api_client.post("/events/register", headers=USER, json=_register_body(rulesAgreed=False))
    assert rules.status_code == 400
    assert rules.json()["error"] == "You must agree to the Official Rules and Terms of Service."

    referral = await api_client.post("/events/register", headers=USER, json=_register_body(referralSource="  "))
    assert referral.json()["error"] == "Please select how you heard about us."

    anonymous = await api_client.post("/events/register", json=_register_body())
    assert anonymous.status_code == 401


@pytest.mark.asyncio
async def test_participants_pagination(api_client: AsyncClient, seed):
    for index, user_id in enumerate(("a", "b", "c")):
        await seed.registration(SLUG, user_id, created_at=f"2026-02-18T1{index}:00:00.000Z", userName=user_id.upper())

    first = await api_client.get(f"/events/{SLUG}/participants", params={"limit": 2})
    body = first.json()
    assert [p["userName"] for p in body["participants"]] == ["A", "B"]
    assert body["hasMore"] is True

    second = await api_client.get(f"/events/{SLUG}/participants", params={"limit": 2, "cursor": body["nextCursor"]})
    assert [p["userName"] for p in second.json()["participants"]] == ["C"]
    assert second.json()["hasMore"] is False

    bad = await api_client.get(f"/events/{SLUG}/participants", params={"limit": 0})
    assert bad.status_code == 400
    assert bad.json()["error"] == "limit must be a positive number"


@pytest.mark.asyncio
async def test_teammate_board(api_client: AsyncClient, docstore, seed):
    await seed.user("u1", "ann@x.com", username="ann", name="Ann")
    missing = await api_client.get("/events/teammates")
    assert missing.status_code == 400
    assert missing.json()["data"] == []

    created = await api_client.post(
        "/events/teammates",
        headers=USER,
        json={
            "eventSlug": SLUG,
            "participationType": "INDIVIDUAL",
            "lookingFor": ["designer"],
            "message": "Looking for a designer who prays",
        },
    )
    assert created.status_code == 201
    post_id = created.json()["data"]["id"]

    listed = await api_client.get("/events/teammates", params={"eventSlug": SLUG})
    assert [item["id"] for item in listed.json()["data"]] == [post_id]
    assert listed.json()["data"][0]["user"]["username"] == "ann"

    forbidden = await api_client.patch(
        "/events/teammates",
        headers={"X-User-Id": "someone"},
        json={"postId": post_id, "participationType": "TEAM", "lookingFor": ["dev"], "message": "Hijacking this post"},
    )
    assert forbidden.status_code == 403

    docstore.set_unavailable("connection refused")
    down = await api_client.get("/events/teammates", params={"eventSlug": SLUG})
    assert down.status_code == 503
    assert down.json()["data"] == []
    docstore.set_unavailable(None)
