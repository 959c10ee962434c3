"""Copy, inspect and reset the legacy and versioned collection generations."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from cph.domain.common import now_iso
from cph.infra.docstore import DocumentStore, Query
from cph.infra.schema import SCHEMA_META_COLLECTION, SCHEMA_META_DOC, CollectionKey, SchemaVersion

LOGGER = logging.getLogger(__name__)

PAGE_SIZE = 300


@dataclass(slots=True)
class CollectionReport:
	key: str
	legacy_collection: str
	versioned_collection: str
	legacy_count: int
	versioned_count: int
	copied: int = 0

	def to_document(self) -> dict[str, Any]:
		raw = asdict(self)
		return {
			"key": raw["key"],
			"legacyCollection": raw["legacy_collection"],
			"versionedCollection": raw["versioned_collection"],
			"copied": raw["copied"],
			"legacyCount": raw["legacy_count"],
			"versionedCount": raw["versioned_count"],
		}


async def _pages(store: DocumentStore, collection: str, page_size: int):
	"""Yield pages of documents ordered by id."""
	query = Query().take(page_size)
	while True:
		docs = await store.query(collection, query)
		if not docs:
			return
		yield docs
		if len(docs) < page_size:
			return
		query = query.after(docs[-1].id)


async def copy_collection(store: DocumentStore, source: str, target: str, *, page_size: int = PAGE_SIZE) -> int:
	"""Merge every document of ``source`` into ``target`` one batch per page."""
	copied = 0
	async for docs in _pages(store, source, page_size):
		batch = store.batch()
		for doc in docs:
			batch.set(target, doc.id, doc.data, merge=True)
		await batch.commit()
		copied += len(docs)
	return copied


async def delete_collection(store: DocumentStore, collection: str, *, page_size: int = PAGE_SIZE) -> int:
	deleted = 0
	while True:
		# deleted rows drop out of the scan, so always read the first page
		docs = await store.query(collection, Query().take(page_size))
		if not docs:
			return deleted
		batch = store.batch()
		for doc in docs:
			batch.delete(collection, doc.id)
		await batch.commit()
		deleted += len(docs)


def _keys(keys: Optional[Iterable[CollectionKey]]) -> list[CollectionKey]:
	return list(keys) if keys is not None else list(CollectionKey)


async def migrate(
	store: DocumentStore,
	version: SchemaVersion,
	*,
	keys: Optional[Iterable[CollectionKey]] = None,
	page_size: int = PAGE_SIZE,
) -> list[CollectionReport]:
	"""Copy legacy collections into the versioned namespace and record the result."""
	reports: list[CollectionReport] = []
	for key in _keys(keys):
		legacy = version.legacy_name(key)
		versioned = version.versioned_name(key)
		legacy_count = await store.count(legacy)
		copied = await copy_collection(store, legacy, versioned, page_size=page_size) if legacy_count else 0
		report = CollectionReport(
			key=key.value,
			legacy_collection=legacy,
			versioned_collection=versioned,
			legacy_count=legacy_count,
			versioned_count=await store.count(versioned),
			copied=copied,
		)
		reports.append(report)
		LOGGER.info("schema_collection_migrated", extra=report.to_document())

	await store.set(
		SCHEMA_META_COLLECTION,
		SCHEMA_META_DOC,
		{
			"activeVersion": version.tag,
			"activeNamespace": version.namespace,
			"migratedAt": now_iso(),
			"collections": [report.to_document() for report in reports],
		},
		merge=True,
	)
	return reports


async def status(
	store: DocumentStore,
	version: SchemaVersion,
	*,
	keys: Optional[Iterable[CollectionKey]] = None,
) -> tuple[list[CollectionReport], Optional[dict[str, Any]]]:
	reports = [
		CollectionReport(
			key=key.value,
			legacy_collection=version.legacy_name(key),
			versioned_collection=version.versioned_name(key),
			legacy_count=await store.count(version.legacy_name(key)),
			versioned_count=await store.count(version.versioned_name(key)),
		)
		for key in _keys(keys)
	]
	meta = await store.get(SCHEMA_META_COLLECTION, SCHEMA_META_DOC)
	return reports, (meta.data if meta else None)


async def reset_legacy(store: DocumentStore, version: SchemaVersion) -> dict[str, int]:
	deleted: dict[str, int] = {}
	for key in CollectionKey:
		name = version.legacy_name(key)
		deleted[name] = await delete_collection(store, name)
		LOGGER.info("schema_collection_reset", extra={"collection": name, "deleted": deleted[name]})
	return deleted


async def reset_versioned(store: DocumentStore, version: SchemaVersion) -> dict[str, int]:
	deleted: dict[str, int] = {}
	for key in CollectionKey:
		name = version.versioned_name(key)
		deleted[name] = await delete_collection(store, name)
		LOGGER.info("schema_collection_reset", extra={"collection": name, "deleted": deleted[name]})
	await store.set(SCHEMA_META_COLLECTION, SCHEMA_META_DOC, {"resetAt": now_iso()}, merge=True)
	return deleted


__all__ = [
	"CollectionReport",
	"copy_collection",
	"delete_collection",
	"migrate",
	"reset_legacy",
	"reset_versioned",
	"status",
]
