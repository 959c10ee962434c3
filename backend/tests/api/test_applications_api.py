from __future__ import annotations

import pytest
from httpx import AsyncClient

SLUG = "lent-hack-2026"
OWNER = {"X-User-Id": "owner", "X-User-Email": "owner@x.com"}
BASE = f"/events/{SLUG}/application"


@pytest.mark.asyncio
async def test_requires_authentication(api_client: AsyncClient):
    resp = await api_client.get(BASE)
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"


@pytest.mark.asyncio
async def test_requires_registration(api_client: AsyncClient):
    resp = await api_client.post(f"{BASE}/submit", headers=OWNER)
    assert resp.status_code == 403
    assert resp.json()["error"] == "Not registered for this event. Register first."


@pytest.mark.asyncio
async def test_get_without_application_returns_null(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    resp = await api_client.get(BASE, headers=OWNER)
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_submit_without_draft(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    resp = await api_client.post(f"{BASE}/submit", headers=OWNER)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Application not found. Save a draft first."


@pytest.mark.asyncio
async def test_draft_then_blocked_then_submitted(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    await seed.user("mate", "mate@x.com", experience="short")

    resp = await api_client.post(
        BASE,
        headers=OWNER,
        json={
            "teamMembers": [{"email": "Mate@X.com"}, {"email": "ghost@x.com"}],
            "sections": {"companyName": "Rosary Labs", "tagline50": "Pray better"},
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "draft"
    assert body["memberEmails"] == ["mate@x.com", "ghost@x.com"]

    blocked = await api_client.post(f"{BASE}/submit", headers=OWNER)
    assert blocked.status_code == 400
    assert blocked.json()["error"].startswith("mate@x.com still need to complete their profiles")

    fetched = await api_client.get(BASE, headers=OWNER)
    statuses = {m["email"]: m["status"] for m in fetched.json()["teamMembers"]}
    assert statuses == {"mate@x.com": "profile_incomplete", "ghost@x.com": "invited"}

    await seed.complete_user("mate", "mate@x.com")
    ok = await api_client.post(f"{BASE}/submit", headers=OWNER)
    assert ok.status_code == 200
    assert ok.json() == {"ok": True}

    final = await api_client.get(BASE, headers=OWNER)
    assert final.json()["status"] == "submitted"
    assert final.json()["submittedAt"]


@pytest.mark.asyncio
async def test_tagline_length_is_validated(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    resp = await api_client.post(BASE, headers=OWNER, json={"sections": {"tagline50": "x" * 51}})
    assert resp.status_code == 400
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_team_add_duplicate_and_remove(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    await seed.complete_user("mate", "mate@x.com")

    added = await api_client.post(f"{BASE}/team", headers=OWNER, json={"email": "mate@x.com"})
    assert added.status_code == 200
    assert added.json() == {"ok": True, "member": {"email": "mate@x.com", "userId": "mate", "status": "complete"}}

    dup = await api_client.post(f"{BASE}/team", headers=OWNER, json={"email": "MATE@x.com"})
    assert dup.status_code == 400
    assert dup.json()["error"] == "already added"

    bad = await api_client.post(f"{BASE}/team", headers=OWNER, json={"email": "not-an-email"})
    assert bad.status_code == 400

    missing = await api_client.delete(f"{BASE}/team", headers=OWNER)
    assert missing.status_code == 400
    assert missing.json()["error"] == "Missing email query parameter"

    removed = await api_client.delete(f"{BASE}/team", headers=OWNER, params={"email": "mate@x.com"})
    assert removed.status_code == 200
    fetched = await api_client.get(BASE, headers=OWNER)
    assert fetched.json()["teamMembers"] == []


@pytest.mark.asyncio
async def test_teammate_sees_and_submits_owner_application(api_client: AsyncClient, seed):
    await seed.registration(SLUG, "owner")
    await seed.registration(SLUG, "mate")
    await seed.complete_user("mate", "mate@x.com")
    mate = {"X-User-Id": "mate", "X-User-Email": "mate@x.com"}

    await api_client.post(f"{BASE}/team", headers=OWNER, json={"email": "mate@x.com"})
    seen = await api_client.get(BASE, headers=mate)
    assert seen.json()["userId"] == "owner"

    resp = await api_client.post(f"{BASE}/submit", headers=mate)
    assert resp.status_code == 200
    owner_view = await api_client.get(BASE, headers=OWNER)
    assert owner_view.json()["status"] == "submitted"
