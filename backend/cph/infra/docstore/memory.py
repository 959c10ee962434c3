"""In-process document store used by tests and local development."""

from __future__ import annotations

import copy
import json
from functools import cmp_to_key
from typing import Any, Iterable, Optional

from cph.infra.docstore.base import Document, DocumentStore, FieldFilter, Query, WriteBatch
from cph.infra.docstore.errors import BackendUnavailableError

_MISSING = object()


def _get_field(data: dict[str, Any], path: str) -> Any:
	current: Any = data
	for part in path.split("."):
		if not isinstance(current, dict) or part not in current:
			return _MISSING
		current = current[part]
	return current


def _sort_key(value: Any) -> tuple[int, Any]:
	"""Type-ranked key so mixed-type fields order deterministically."""
	if value is None:
		return (0, 0)
	if isinstance(value, bool):
		return (1, value)
	if isinstance(value, (int, float)):
		return (2, value)
	if isinstance(value, str):
		return (3, value)
	if isinstance(value, (list, tuple)):
		return (4, tuple(_sort_key(item) for item in value))
	return (5, json.dumps(value, sort_keys=True, default=str))


def _matches(data: dict[str, Any], flt: FieldFilter) -> bool:
	value = _get_field(data, flt.field)
	if value is _MISSING:
		return False
	if flt.op == "array_contains":
		return isinstance(value, list) and any(_sort_key(item) == _sort_key(flt.value) for item in value)
	left, right = _sort_key(value), _sort_key(flt.value)
	if flt.op == "==":
		return left == right
	if left[0] != right[0]:
		return False
	if flt.op == "<":
		return left < right
	if flt.op == "<=":
		return left <= right
	if flt.op == ">":
		return left > right
	return left >= right


def _compare_rows(a: tuple[Any, ...], b: tuple[Any, ...], directions: tuple[str, ...]) -> int:
	for left, right, direction in zip(a, b, directions):
		if left == right:
			continue
		result = -1 if left < right else 1
		return -result if direction == "desc" else result
	return 0


class _MemoryBatch(WriteBatch):
	def __init__(self, store: "InMemoryDocumentStore") -> None:
		super().__init__()
		self._store = store

	async def commit(self) -> None:
		self._store._raise_if_unavailable()
		for op, collection, doc_id, data, merge in self._ops:
			if op == "set":
				assert data is not None
				self._store._write(collection, doc_id, data, merge=merge)
			else:
				self._store._collections.get(collection, {}).pop(doc_id, None)
		self._ops.clear()


class InMemoryDocumentStore(DocumentStore):
	"""Dictionary-backed store with the same query and index semantics as Postgres."""

	def __init__(self, composite_indexes: Iterable[str] = ()) -> None:
		super().__init__(composite_indexes)
		self._collections: dict[str, dict[str, dict[str, Any]]] = {}
		self._unavailable: Optional[str] = None

	def set_unavailable(self, reason: Optional[str]) -> None:
		"""Simulate an outage; every call raises until reset with ``None``."""
		self._unavailable = reason

	def _raise_if_unavailable(self) -> None:
		if self._unavailable:
			raise BackendUnavailableError(self._unavailable)

	def _write(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool) -> None:
		bucket = self._collections.setdefault(collection, {})
		payload = copy.deepcopy(data)
		if merge and doc_id in bucket:
			bucket[doc_id].update(payload)
		else:
			bucket[doc_id] = payload

	def _select(self, collection: str, query: Query) -> list[Document]:
		bucket = self._collections.get(collection, {})
		rows = [
			(doc_id, data)
			for doc_id, data in bucket.items()
			if all(_matches(data, flt) for flt in query.filters)
		]
		order_fields = tuple(name for name, _ in query.order_by)
		directions = tuple(direction for _, direction in query.order_by)
		if order_fields:
			rows = [row for row in rows if all(_get_field(row[1], name) is not _MISSING for name in order_fields)]
		# the document id always breaks ties, following the last declared direction
		id_direction = directions[-1] if directions else "asc"
		all_directions = directions + (id_direction,)

		def _row_key(row: tuple[str, dict[str, Any]]) -> tuple[Any, ...]:
			doc_id, data = row
			return tuple(_sort_key(_get_field(data, name)) for name in order_fields) + (_sort_key(doc_id),)

		rows.sort(key=cmp_to_key(lambda a, b: _compare_rows(_row_key(a), _row_key(b), all_directions)))
		if query.start_after is not None:
			cursor = tuple(_sort_key(value) for value in query.start_after)
			rows = [row for row in rows if _compare_rows(_row_key(row), cursor, all_directions) > 0]
		if query.limit is not None:
			rows = rows[: query.limit]
		return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in rows]

	async def get(self, collection: str, doc_id: str) -> Optional[Document]:
		self._raise_if_unavailable()
		data = self._collections.get(collection, {}).get(doc_id)
		if data is None:
			return None
		return Document(id=doc_id, data=copy.deepcopy(data))

	async def query(self, collection: str, query: Query) -> list[Document]:
		self._raise_if_unavailable()
		self._check_index(collection, query)
		return self._select(collection, query)

	async def count(self, collection: str, query: Optional[Query] = None) -> int:
		self._raise_if_unavailable()
		query = (query or Query()).unordered()
		return len(self._select(collection, query))

	async def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
		self._raise_if_unavailable()
		self._write(collection, doc_id, data, merge=merge)

	async def delete(self, collection: str, doc_id: str) -> None:
		self._raise_if_unavailable()
		self._collections.get(collection, {}).pop(doc_id, None)

	def batch(self) -> WriteBatch:
		return _MemoryBatch(self)

	async def ping(self) -> None:
		self._raise_if_unavailable()

	def collection_names(self) -> list[str]:
		return sorted(name for name, bucket in self._collections.items() if bucket)


__all__ = ["InMemoryDocumentStore"]
