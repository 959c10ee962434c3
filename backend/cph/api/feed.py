"""Ranked launch feed."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from cph.api.backend_error import backend_error_message
from cph.api.deps import get_feed_service
from cph.api.errors import error_response
from cph.domain.ranking.feed import FeedService
from cph.infra.docstore import DocumentStoreError

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["feed"])


@router.get("/feed")
async def get_feed(
	request: Request,
	topic: Optional[str] = Query(default=None),
	feed: FeedService = Depends(get_feed_service),
):
	try:
		data = await feed.get_feed(topic.strip() if topic and topic.strip() else None)
	except DocumentStoreError as exc:
		LOGGER.warning("feed_unavailable", extra={"error_type": type(exc).__name__})
		return error_response(request, status.HTTP_503_SERVICE_UNAVAILABLE, backend_error_message(exc), data=[])
	return {"data": data}


__all__ = ["router"]
