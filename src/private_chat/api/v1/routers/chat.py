from __future__ import annotations

from fastapi import APIRouter, Query, Response

from private_chat.api.deps import (
    AuthDep,
    ChatConfigDep,
    ChatPathsDep,
    ClockDep,
    CurrentMaster,
    CurrentPrincipal,
    StoreDep,
)
from private_chat.api.v1.schemas.chat import (
    ClientStatusResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from private_chat.services import chat_service
from private_chat.services.view import to_status_view

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.get("/status", response_model=ClientStatusResponse)
async def get_status(
    principal: CurrentPrincipal,
    paths: ChatPathsDep,
    config: ChatConfigDep,
    store: StoreDep,
) -> ClientStatusResponse:
    status = await chat_service.get_client_status(paths, store)
    return ClientStatusResponse.model_validate(
        to_status_view(status, config.max_messages), from_attributes=True,
    )


@router.get("/messages", response_model=list[MessageResponse])
async def list_messages(
    principal: CurrentPrincipal,
    paths: ChatPathsDep,
    config: ChatConfigDep,
    store: StoreDep,
    limit: int | None = Query(None, ge=1, le=200),
) -> list[MessageResponse]:
    messages = await chat_service.list_messages(paths, limit or config.history_limit, store)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/messages", response_model=SendMessageResponse, status_code=201)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    paths: ChatPathsDep,
    config: ChatConfigDep,
    store: StoreDep,
    clock: ClockDep,
) -> SendMessageResponse:
    status = await chat_service.get_client_status(paths, store)
    result = await chat_service.send_message(
        principal,
        body.text,
        status,
        paths,
        store,
        clock,
        special_code=config.special_code,
        max_messages=config.max_messages,
    )
    return SendMessageResponse(
        action=result.action,
        message=MessageResponse.model_validate(result.message, from_attributes=True),
        status=ClientStatusResponse.model_validate(
            to_status_view(result.status, config.max_messages), from_attributes=True,
        ),
    )


@router.post("/login", response_model=ClientStatusResponse)
async def login(
    principal: CurrentPrincipal,
    paths: ChatPathsDep,
    config: ChatConfigDep,
    store: StoreDep,
    clock: ClockDep,
) -> ClientStatusResponse:
    status = await chat_service.login(principal, paths, store, clock)
    if status is None:
        status = await chat_service.get_client_status(paths, store)
    return ClientStatusResponse.model_validate(
        to_status_view(status, config.max_messages), from_attributes=True,
    )


@router.post("/logout", status_code=204)
async def logout(
    principal: CurrentPrincipal,
    paths: ChatPathsDep,
    store: StoreDep,
    auth: AuthDep,
) -> Response:
    await chat_service.logout(principal, paths, store, auth)
    return Response(status_code=204)


@router.post("/force-logout", status_code=202)
async def force_logout(
    master: CurrentMaster,
    paths: ChatPathsDep,
    store: StoreDep,
) -> dict[str, str]:
    await chat_service.force_logout(master, paths, store)
    return {"status": "requested"}
