"""Feed assembly: load live launches with their counts and rank them."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from cph.domain.ranking.scoring import LaunchEngagement, rank_launches
from cph.domain.users.directory import UserDirectory
from cph.infra.docstore import Document, DocumentStore, Query
from cph.infra.schema import CollectionKey
from cph.infra.versioned import VersionedCollection
from cph.settings import Settings, settings

LOGGER = logging.getLogger(__name__)


def _product_summary(product: Document, maker: Optional[dict[str, Any]], topics: list[dict[str, Any]]) -> dict[str, Any]:
	data = product.data
	return {
		"id": product.id,
		"slug": str(data.get("slug") or ""),
		"name": str(data.get("name") or ""),
		"tagline": str(data.get("tagline") or ""),
		"maker": maker,
		"topics": topics,
	}


class FeedService:
	"""Builds the ranked home feed from the launch collections."""

	def __init__(self, store: DocumentStore, *, config: Optional[Settings] = None) -> None:
		self._config = config or settings
		self._launches = VersionedCollection.for_key(store, CollectionKey.LAUNCHES, self._config)
		self._products = VersionedCollection.for_key(store, CollectionKey.PRODUCTS, self._config)
		self._topics = VersionedCollection.for_key(store, CollectionKey.TOPICS, self._config)
		self._upvotes = VersionedCollection.for_key(store, CollectionKey.UPVOTES, self._config)
		self._comments = VersionedCollection.for_key(store, CollectionKey.COMMENTS, self._config)
		self._directory = UserDirectory(store, config=self._config)

	async def _live_launches(self) -> list[Document]:
		query = (
			Query()
			.where("status", "==", "LIVE")
			.order("launchDate", "desc")
			.take(self._config.feed_launch_limit)
		)
		return await self._launches.find(query)

	async def _topic(self, slug: str) -> Optional[dict[str, Any]]:
		docs = await self._topics.find(Query().where("slug", "==", slug).take(1))
		if not docs:
			return None
		data = docs[0].data
		return {"id": docs[0].id, "name": str(data.get("name") or ""), "slug": str(data.get("slug") or slug)}

	async def _counts(self, launch_id: str) -> tuple[int, int]:
		by_launch = Query().where("launchId", "==", launch_id)
		upvotes, comments = await asyncio.gather(self._upvotes.count(by_launch), self._comments.count(by_launch))
		return upvotes, comments

	async def load_candidates(self, topic: Optional[str] = None) -> list[LaunchEngagement]:
		launches = await self._live_launches()
		product_ids = list(dict.fromkeys(str(doc.data.get("productId") or "") for doc in launches))
		product_docs = await asyncio.gather(*(self._products.get(pid) for pid in product_ids))
		products = {doc.id: doc for doc in product_docs if doc is not None}

		def _topic_slugs(product: Document) -> list[str]:
			raw = product.data.get("topicSlugs")
			return [str(item) for item in raw] if isinstance(raw, list) else []

		selected: list[tuple[Document, Document]] = []
		for launch in launches:
			product = products.get(str(launch.data.get("productId") or ""))
			if product is None:
				continue
			if topic and topic not in _topic_slugs(product):
				continue
			selected.append((launch, product))

		maker_ids = list(dict.fromkeys(str(p.data.get("makerId") or "") for _, p in selected if p.data.get("makerId")))
		maker_records = await asyncio.gather(*(self._directory.get_user_by_id(mid) for mid in maker_ids))
		makers = {
			record.id: {"id": record.id, "name": record.name, "username": record.username}
			for record in maker_records
			if record is not None
		}

		async def _build(launch: Document, product: Document) -> LaunchEngagement:
			(upvotes, comments), topic_rows = await asyncio.gather(
				self._counts(launch.id),
				asyncio.gather(*(self._topic(slug) for slug in _topic_slugs(product))),
			)
			summary = _product_summary(
				product,
				makers.get(str(product.data.get("makerId") or "")),
				[row for row in topic_rows if row is not None],
			)
			return LaunchEngagement(
				id=launch.id,
				launch_date=str(launch.data.get("launchDate") or ""),
				upvotes=upvotes,
				comments=comments,
				payload=summary,
			)

		return list(await asyncio.gather(*(_build(launch, product) for launch, product in selected)))

	async def get_feed(self, topic: Optional[str] = None, *, now: Optional[datetime] = None) -> list[dict[str, Any]]:
		candidates = await self.load_candidates(topic)
		ranked = rank_launches(candidates, now=now)
		LOGGER.info("feed_ranked", extra={"candidates": len(candidates), "topic": topic})
		return [
			{
				"rank": position,
				"score": entry.score,
				"launchId": entry.launch.id,
				"launchDate": entry.launch.launch_date,
				"product": entry.launch.payload,
				"metrics": {"upvotes": entry.launch.upvotes, "comments": entry.launch.comments},
			}
			for position, entry in enumerate(ranked, start=1)
		]


__all__ = ["FeedService"]
