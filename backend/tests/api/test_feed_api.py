from __future__ import annotations

import pytest
from httpx import AsyncClient

from cph.infra.schema import CollectionKey


@pytest.mark.asyncio
async def test_feed_returns_ranked_launches(api_client: AsyncClient, docstore, seed):
    products = seed.collection(CollectionKey.PRODUCTS)
    launches = seed.collection(CollectionKey.LAUNCHES)
    await docstore.set(products, "p1", {"slug": "a", "name": "A", "tagline": "", "topicSlugs": []})
    await docstore.set(products, "p2", {"slug": "b", "name": "B", "tagline": "", "topicSlugs": []})
    await docstore.set(launches, "l1", {"productId": "p1", "status": "LIVE", "launchDate": "2026-02-18T10:00:00.000Z"})
    await docstore.set(launches, "l2", {"productId": "p2", "status": "LIVE", "launchDate": "2026-02-18T10:00:00.000Z"})
    await docstore.set(seed.collection(CollectionKey.UPVOTES), "v1", {"launchId": "l2"})

    resp = await api_client.get("/feed")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [item["launchId"] for item in data] == ["l2", "l1"]
    assert [item["rank"] for item in data] == [1, 2]
    assert data[1]["score"] == 0.0


@pytest.mark.asyncio
async def test_feed_degrades_when_store_is_down(api_client: AsyncClient, docstore):
    docstore.set_unavailable("connection refused")
    resp = await api_client.get("/feed")
    assert resp.status_code == 503
    body = resp.json()
    assert body["data"] == []
    assert body["error"].startswith("Database is unreachable")
    assert "request_id" in body
