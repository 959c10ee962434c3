"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from cph.infra.docstore import DocumentStore, DocumentStoreError
from cph.obs import metrics
from cph.settings import settings

LOGGER = logging.getLogger(__name__)


async def _docstore_status(store: DocumentStore | None, timeout: float = 0.5) -> Dict[str, Any]:
	if store is None:
		metrics.mark_docstore(False)
		return {"ok": False, "error": "docstore_not_initialised"}
	start = perf_counter()
	try:
		await asyncio.wait_for(store.ping(), timeout=timeout)
	except (DocumentStoreError, asyncio.TimeoutError) as exc:
		metrics.mark_docstore(False)
		LOGGER.warning("Document store readiness check failed", exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	latency = perf_counter() - start
	metrics.mark_docstore(True, latency_seconds=latency)
	return {"ok": True, "latency_ms": round(latency * 1000, 2)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok", "service": settings.service_name, "commit": settings.git_commit}


async def readiness(store: DocumentStore | None) -> Tuple[int, Dict[str, Any]]:
	docstore_state = await _docstore_status(store)
	ok = bool(docstore_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"checks": {
				"docstore": docstore_state,
				"schema": {"version": settings.schema_version, "legacyFallback": settings.legacy_fallback},
			},
		},
	)


__all__ = ["liveness", "readiness"]
