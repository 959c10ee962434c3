"""Operations endpoints providing health checks and admin-only reports."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from cph.infra.docstore import BackendUnavailableError
from cph.infra.schema import SchemaVersion
from cph.maintenance import schema_migration
from cph.obs import health
from cph.settings import settings

router = APIRouter(prefix="", tags=["ops"])


def _resolve_token(x_admin_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
	if x_admin_token:
		return x_admin_token
	if authorization and authorization.lower().startswith("bearer "):
		return authorization.split(" ", 1)[1]
	return None


async def require_admin(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	token = settings.obs_admin_token
	if not token:
		# Fail closed when no admin token is configured
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	provided = _resolve_token(X_Admin_Token, authorization)
	if provided != token:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


async def require_metrics_access(
	X_Admin_Token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> None:
	if settings.obs_metrics_public:
		return
	await require_admin(X_Admin_Token=X_Admin_Token, authorization=authorization)


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready(request: Request) -> Response:
	status_code, payload = await health.readiness(getattr(request.app.state, "docstore", None))
	return JSONResponse(content=payload, status_code=status_code)


@router.get("/metrics")
async def prometheus_metrics(_: None = Depends(require_metrics_access)) -> Response:
	payload = generate_latest()
	return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


@router.get("/ops/schema")
async def schema_status(request: Request, _: None = Depends(require_admin)) -> dict[str, Any]:
	store = getattr(request.app.state, "docstore", None)
	if store is None:
		raise BackendUnavailableError("docstore_not_initialised")
	reports, meta = await schema_migration.status(store, SchemaVersion(settings.schema_version))
	return {
		"activeVersion": settings.schema_version,
		"legacyFallback": settings.legacy_fallback,
		"meta": meta,
		"collections": [report.to_document() for report in reports],
	}


__all__ = ["router", "require_admin", "require_metrics_access"]
