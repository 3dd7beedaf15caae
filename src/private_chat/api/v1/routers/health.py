from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from private_chat.api.deps import StoreDep
from private_chat.application.ports.store import Query
from private_chat.config import settings

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(store: StoreDep) -> JSONResponse:
    try:
        await store.query(Query(collection=settings.ROOM_COLLECTION, limit=1))
    except Exception as exc:  # noqa: BLE001
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "errors": [f"store: {exc}"]},
        )
    return JSONResponse(content={"status": "ready"})
