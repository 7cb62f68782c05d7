from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from chat_delivery.infrastructure.db.session import AsyncSessionLocal

router = APIRouter(tags=["health"])


async def _ping_postgres() -> None:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1"))


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    checks: dict[str, Callable[[], Awaitable[object]]] = {
        "postgres": _ping_postgres,
        "redis": request.app.state.redis.ping,
    }
    errors: list[str] = []
    for name, check in checks.items():
        try:
            await check()
        except Exception as exc:  # noqa: BLE001
            errors.append(f"{name}: {exc}")

    if errors:
        return JSONResponse(status_code=503, content={"status": "unavailable", "errors": errors})
    return JSONResponse(content={"status": "ready"})
