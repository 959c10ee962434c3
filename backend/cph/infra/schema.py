"""Schema generations for document collections.

Every logical collection exists under two physical names: the legacy name
(the key itself, e.g. ``eventApplications``) and a versioned name prefixed
with the active namespace (``cph_v1_eventApplications``). Reads may fall back
to the legacy generation; writes only ever target the versioned one.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

SCHEMA_META_COLLECTION = "cph_schema_meta"
SCHEMA_META_DOC = "active"

_VERSION_RE = re.compile(r"^v[0-9]+$")


class CollectionKey(str, Enum):
	USERS = "users"
	TOPICS = "topics"
	PRODUCTS = "products"
	LAUNCHES = "launches"
	PRODUCT_MEDIA = "productMedia"
	UPVOTES = "upvotes"
	COMMENTS = "comments"
	FOLLOWS = "follows"
	REPORTS = "reports"
	NOTIFICATIONS = "notifications"
	COLLECTIONS = "collections"
	COLLECTION_ITEMS = "collectionItems"
	EVENT_REGISTRATIONS = "eventRegistrations"
	TEAMMATE_POSTS = "teammatePosts"
	EVENT_APPLICATIONS = "eventApplications"


@dataclass(slots=True, frozen=True)
class SchemaVersion:
	tag: str = "v1"

	def __post_init__(self) -> None:
		if not _VERSION_RE.match(self.tag):
			raise ValueError(f"invalid schema version tag: {self.tag!r}")

	@property
	def namespace(self) -> str:
		return f"cph_{self.tag}"

	def legacy_name(self, key: CollectionKey | str) -> str:
		return CollectionKey(key).value

	def versioned_name(self, key: CollectionKey | str) -> str:
		return f"{self.namespace}_{CollectionKey(key).value}"


def expand_index_declarations(declarations: Iterable[str], version: SchemaVersion) -> tuple[str, ...]:
	"""Declare each logical-collection index on both physical generations."""
	expanded: list[str] = []
	for raw in declarations:
		collection, sep, fields = raw.partition(":")
		name = collection.strip()
		expanded.append(raw.strip())
		if sep and name in CollectionKey._value2member_map_:
			expanded.append(f"{version.versioned_name(name)}:{fields.strip()}")
	return tuple(dict.fromkeys(expanded))


__all__ = [
	"CollectionKey",
	"SCHEMA_META_COLLECTION",
	"SCHEMA_META_DOC",
	"SchemaVersion",
	"expand_index_declarations",
]
