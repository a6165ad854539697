"""Health and metrics endpoints."""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from privacy_gate.infra import postgres

router = APIRouter()


@router.get("/health/live")
async def live() -> dict[str, str]:
	return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> Response:
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			await conn.execute("SELECT 1")
	except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError):
		return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
	return JSONResponse({"status": "ok"})


@router.get("/metrics")
async def prometheus_metrics() -> Response:
	payload = generate_latest()
	return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
