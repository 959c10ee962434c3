from __future__ import annotations

import pytest

from cph.infra.docstore import InMemoryDocumentStore, Query
from cph.infra.schema import CollectionKey, SchemaVersion, expand_index_declarations
from cph.infra.versioned import VersionedCollection
from cph.obs import metrics as obs_metrics
from cph.settings import DEFAULT_COMPOSITE_INDEXES

VERSION = SchemaVersion("v1")


def _collection(store, *, fallback: bool = True) -> VersionedCollection:
    return VersionedCollection(store, CollectionKey.EVENT_APPLICATIONS, version=VERSION, legacy_fallback=fallback)


def test_collection_names():
    assert VERSION.namespace == "cph_v1"
    assert VERSION.legacy_name(CollectionKey.EVENT_APPLICATIONS) == "eventApplications"
    assert VERSION.versioned_name("eventApplications") == "cph_v1_eventApplications"


def test_invalid_version_tag_rejected():
    with pytest.raises(ValueError):
        SchemaVersion("latest")


def test_index_declarations_cover_both_generations():
    expanded = expand_index_declarations(["eventRegistrations:eventSlug,createdAt", "custom:a,b"], VERSION)
    assert "eventRegistrations:eventSlug,createdAt" in expanded
    assert "cph_v1_eventRegistrations:eventSlug,createdAt" in expanded
    assert "custom:a,b" in expanded
    assert not any(item.startswith("cph_v1_custom") for item in expanded)


def test_default_indexes_only_cover_queried_collections():
    collections = {raw.partition(":")[0] for raw in DEFAULT_COMPOSITE_INDEXES}
    assert collections == {"eventRegistrations", "teammatePosts", "launches"}


@pytest.mark.asyncio
async def test_legacy_only_record_visible_only_with_fallback():
    store = InMemoryDocumentStore()
    await store.set("eventApplications", "lent_u1", {"status": "draft"})

    before = obs_metrics.DOCSTORE_LEGACY_READS.labels(collection="eventApplications")._value.get()
    found = await _collection(store).get("lent_u1")
    assert found is not None and found.data == {"status": "draft"}
    after = obs_metrics.DOCSTORE_LEGACY_READS.labels(collection="eventApplications")._value.get()
    assert after == before + 1

    assert await _collection(store, fallback=False).get("lent_u1") is None


@pytest.mark.asyncio
async def test_versioned_record_wins_over_legacy():
    store = InMemoryDocumentStore()
    await store.set("eventApplications", "lent_u1", {"status": "draft"})
    await store.set("cph_v1_eventApplications", "lent_u1", {"status": "submitted"})
    found = await _collection(store).get("lent_u1")
    assert found.data == {"status": "submitted"}


@pytest.mark.asyncio
async def test_writes_only_touch_versioned_collection():
    store = InMemoryDocumentStore()
    collection = _collection(store)
    await collection.set("lent_u1", {"status": "draft"})
    assert await store.get("cph_v1_eventApplications", "lent_u1") is not None
    assert await store.get("eventApplications", "lent_u1") is None
    await store.set("eventApplications", "lent_u2", {"status": "draft"})
    await collection.delete("lent_u2")
    assert await store.get("eventApplications", "lent_u2") is not None


@pytest.mark.asyncio
async def test_find_falls_back_only_when_versioned_is_empty():
    store = InMemoryDocumentStore()
    await store.set("eventApplications", "a", {"eventSlug": "lent"})
    query = Query().where("eventSlug", "==", "lent")
    assert [doc.id for doc in await _collection(store).find(query)] == ["a"]

    await store.set("cph_v1_eventApplications", "b", {"eventSlug": "lent"})
    assert [doc.id for doc in await _collection(store).find(query)] == ["b"]


@pytest.mark.asyncio
async def test_find_merged_unions_generations():
    store = InMemoryDocumentStore()
    await store.set("eventApplications", "a", {"eventSlug": "lent", "v": "legacy"})
    await store.set("eventApplications", "b", {"eventSlug": "lent", "v": "legacy"})
    await store.set("cph_v1_eventApplications", "b", {"eventSlug": "lent", "v": "versioned"})
    await store.set("cph_v1_eventApplications", "c", {"eventSlug": "lent", "v": "versioned"})
    docs = await _collection(store).find_merged(Query().where("eventSlug", "==", "lent"))
    by_id = {doc.id: doc.data["v"] for doc in docs}
    assert by_id == {"a": "legacy", "b": "versioned", "c": "versioned"}

    without = await _collection(store, fallback=False).find_merged(Query().where("eventSlug", "==", "lent"))
    assert sorted(doc.id for doc in without) == ["b", "c"]


@pytest.mark.asyncio
async def test_scan_merged_loads_at_most_ceiling_documents():
    store = InMemoryDocumentStore()
    for doc_id in ("a", "b"):
        await store.set("eventApplications", doc_id, {"eventSlug": "lent", "v": "legacy"})
    for doc_id in ("b", "c"):
        await store.set("cph_v1_eventApplications", doc_id, {"eventSlug": "lent", "v": "versioned"})
    query = Query().where("eventSlug", "==", "lent")

    full = await _collection(store).scan_merged(query, 2)
    assert {doc.id: doc.data["v"] for doc in full} == {"b": "versioned", "c": "versioned"}

    topped_up = await _collection(store).scan_merged(query, 3)
    assert len(topped_up) <= 3
    assert {doc.id for doc in topped_up} >= {"b", "c"}
    assert all(doc.data["v"] == "versioned" for doc in topped_up if doc.id == "b")

    assert await _collection(store).scan_merged(query, 0) == []


@pytest.mark.asyncio
async def test_count_falls_back_when_versioned_empty():
    store = InMemoryDocumentStore()
    await store.set("eventApplications", "a", {"eventSlug": "lent"})
    assert await _collection(store).count() == 1
    assert await _collection(store, fallback=False).count() == 0
