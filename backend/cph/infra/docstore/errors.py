"""Exceptions raised by document store backends."""

from __future__ import annotations


class DocumentStoreError(Exception):
	"""Base class for document store failures."""


class BackendUnavailableError(DocumentStoreError):
	"""Raised when the store cannot be reached or rejects our credentials."""


class MissingIndexError(DocumentStoreError):
	"""Raised when an ordered query needs a composite index that is not declared."""

	def __init__(self, collection: str, fields: tuple[str, ...]) -> None:
		self.collection = collection
		self.fields = fields
		super().__init__(f"query on {collection} requires a composite index on ({', '.join(fields)})")
