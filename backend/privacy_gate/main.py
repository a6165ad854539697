"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from privacy_gate import obs
from privacy_gate.api import ops, privacy
from privacy_gate.api.errors import install_error_handlers
from privacy_gate.infra import postgres


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Privacy Gate", lifespan=lifespan)
obs.init(app)
install_error_handlers(app)

app.include_router(privacy.router, tags=["privacy"])
app.include_router(ops.router, tags=["ops"])
