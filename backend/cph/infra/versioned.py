"""Repository over the legacy and versioned generations of one collection."""

from __future__ import annotations

import logging
from typing import Any, Optional

from cph.infra.docstore import Document, DocumentStore, Query, WriteBatch
from cph.infra.schema import CollectionKey, SchemaVersion
from cph.obs import metrics as obs_metrics
from cph.settings import Settings, settings

LOGGER = logging.getLogger(__name__)


class VersionedCollection:
	"""Reads hit the versioned collection first and fall back to legacy.

	Fallback only happens when the versioned read came back empty and
	``legacy_fallback`` is enabled. Writes always target the versioned name.
	"""

	def __init__(
		self,
		store: DocumentStore,
		key: CollectionKey | str,
		*,
		version: SchemaVersion,
		legacy_fallback: bool = True,
	) -> None:
		self.store = store
		self.key = CollectionKey(key)
		self.version = version
		self.legacy_fallback = legacy_fallback
		self.primary = version.versioned_name(self.key)
		self.legacy = version.legacy_name(self.key)

	@classmethod
	def for_key(
		cls,
		store: DocumentStore,
		key: CollectionKey | str,
		config: Optional[Settings] = None,
	) -> "VersionedCollection":
		cfg = config or settings
		return cls(
			store,
			key,
			version=SchemaVersion(cfg.schema_version),
			legacy_fallback=cfg.legacy_fallback,
		)

	def _legacy_hit(self) -> None:
		obs_metrics.inc_legacy_read(self.key.value)
		LOGGER.debug("docstore_legacy_read", extra={"collection": self.key.value})

	async def get(self, doc_id: str) -> Optional[Document]:
		doc = await self.store.get(self.primary, doc_id)
		if doc is None and self.legacy_fallback:
			doc = await self.store.get(self.legacy, doc_id)
			if doc is not None:
				self._legacy_hit()
		return doc

	async def find(self, query: Query) -> list[Document]:
		docs = await self.store.query(self.primary, query)
		if not docs and self.legacy_fallback:
			docs = await self.store.query(self.legacy, query)
			if docs:
				self._legacy_hit()
		return docs

	async def find_merged(self, query: Query) -> list[Document]:
		"""Union of both generations keyed by id; versioned documents win.

		Result order is unspecified, callers sort after merging.
		"""
		merged: dict[str, Document] = {}
		if self.legacy_fallback:
			for doc in await self.store.query(self.legacy, query):
				merged[doc.id] = doc
		legacy_ids = set(merged)
		for doc in await self.store.query(self.primary, query):
			merged[doc.id] = doc
			legacy_ids.discard(doc.id)
		if legacy_ids:
			self._legacy_hit()
		return list(merged.values())

	async def scan_merged(self, query: Query, ceiling: int) -> list[Document]:
		"""Like :meth:`find_merged` but loads at most ``ceiling`` documents overall.

		The versioned generation is read first; legacy only gets the budget
		it leaves over, and legacy copies of ids already seen are dropped.
		"""
		merged: dict[str, Document] = {
			doc.id: doc for doc in await self.store.query(self.primary, query.take(ceiling))
		}
		remaining = ceiling - len(merged)
		if self.legacy_fallback and remaining > 0:
			hit = False
			for doc in await self.store.query(self.legacy, query.take(remaining)):
				if doc.id not in merged:
					merged[doc.id] = doc
					hit = True
			if hit:
				self._legacy_hit()
		return list(merged.values())

	async def count(self, query: Optional[Query] = None) -> int:
		total = await self.store.count(self.primary, query)
		if total == 0 and self.legacy_fallback:
			total = await self.store.count(self.legacy, query)
			if total:
				self._legacy_hit()
		return total

	async def set(self, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
		await self.store.set(self.primary, doc_id, data, merge=merge)

	async def delete(self, doc_id: str) -> None:
		await self.store.delete(self.primary, doc_id)

	def batch_set(self, batch: WriteBatch, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> WriteBatch:
		return batch.set(self.primary, doc_id, data, merge=merge)


__all__ = ["VersionedCollection"]
