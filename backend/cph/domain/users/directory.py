"""User directory over the ``users`` collection."""

from __future__ import annotations

import logging
from typing import Optional

from cph.domain.common import now_iso
from cph.domain.exceptions import ConflictError, NotFoundError
from cph.domain.users.models import ProfileUpdate, UserRecord
from cph.infra.docstore import DocumentStore, Query
from cph.infra.schema import CollectionKey
from cph.infra.versioned import VersionedCollection
from cph.settings import Settings

LOGGER = logging.getLogger(__name__)


class UserDirectory:
	"""Lookups by id, email and username. Misses return ``None``."""

	def __init__(self, store: DocumentStore, *, config: Optional[Settings] = None) -> None:
		self._users = VersionedCollection.for_key(store, CollectionKey.USERS, config)

	async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
		if not user_id:
			return None
		doc = await self._users.get(user_id)
		return UserRecord.from_document(doc) if doc else None

	async def _find_one(self, field_name: str, value: str) -> Optional[UserRecord]:
		docs = await self._users.find(Query().where(field_name, "==", value).take(1))
		return UserRecord.from_document(docs[0]) if docs else None

	async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
		normalized = (email or "").strip().lower()
		if not normalized:
			return None
		return await self._find_one("email", normalized)

	async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
		normalized = (username or "").strip().lower()
		if not normalized:
			return None
		return await self._find_one("username", normalized)

	async def update_profile(self, user_id: str, update: ProfileUpdate) -> UserRecord:
		conflict = await self.get_user_by_username(update.username)
		if conflict and conflict.id != user_id:
			raise ConflictError("Username already taken")

		doc = await self._users.get(user_id)
		if doc is None:
			raise NotFoundError("User not found")

		changes = {
			"name": update.name,
			"username": update.username,
			"bio": update.bio,
			"avatarUrl": update.avatar_url,
			"experience": update.experience,
			"linkedInUrl": update.linked_in_url,
			"xUrl": update.x_url,
			"githubUrl": update.github_url,
			"websiteUrl": update.website_url,
			"updatedAt": now_iso(),
		}
		# Full write so a legacy-only user lands complete in the versioned generation
		data = {**doc.data, **changes}
		await self._users.set(user_id, data)
		LOGGER.info("profile_updated", extra={"user_id": user_id})
		return UserRecord.model_validate({**data, "id": user_id})


__all__ = ["UserDirectory"]
