from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from private_chat.api.deps import AuthDep, ChatConfigDep, StoreDep
from private_chat.api.v1.schemas.room import RoomMessageResponse
from private_chat.api.v1.schemas.session import SessionStateResponse
from private_chat.application.dto.principal import Principal
from private_chat.application.dto.session import SessionView
from private_chat.application.exceptions import AppError, AuthError
from private_chat.application.ports.store import DocumentStore
from private_chat.config import settings
from private_chat.domain.entities.room_message import RoomMessage
from private_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from private_chat.infrastructure.ws.registry import SessionRegistry
from private_chat.services import room_service
from private_chat.services.session import ChatSession

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

registry = SessionRegistry()


def get_registry() -> SessionRegistry:
    return registry


async def _send(ws: WebSocket, event_type: str, data: dict[str, Any]) -> None:
    await ws.send_text(WsOutbound(type=event_type, data=data).model_dump_json())


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send(ws, "pong", {})
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


@router.websocket("/ws/session")
async def ws_session(
    websocket: WebSocket,
    store: StoreDep,
    auth: AuthDep,
    config: ChatConfigDep,
) -> None:
    await websocket.accept()

    async def _push(view: SessionView) -> None:
        state = SessionStateResponse.model_validate(view, from_attributes=True)
        await _send(websocket, "state", state.model_dump(mode="json"))

    session = ChatSession(store, auth, config, on_change=_push)
    registry.add(session)
    heartbeat_task = asyncio.create_task(_heartbeat(websocket), name="ws-heartbeat-session")
    try:
        await _push(session.view())
        token = websocket.query_params.get("token")
        if token:
            await session.authenticate(token)
        await _session_loop(websocket, session)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS session error")
    finally:
        heartbeat_task.cancel()
        registry.discard(session)
        await session.close()


async def _session_loop(ws: WebSocket, session: ChatSession) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send(ws, "error", {"code": "invalid_payload"})
            continue

        try:
            await _dispatch(ws, session, msg)
        except AppError as exc:
            await _send(ws, "error", {"code": "action_failed", "type": msg.type, "detail": exc.detail})


async def _dispatch(ws: WebSocket, session: ChatSession, msg: WsInbound) -> None:
    if msg.type == "ping":
        await _send(ws, "pong", {})

    elif msg.type == "auth":
        token = msg.data.get("token")
        if not token:
            await _send(ws, "error", {"code": "invalid_data", "detail": "token is required"})
            return
        await session.authenticate(str(token))

    elif msg.type == "login":
        await session.login()

    elif msg.type == "send":
        outcome = await session.send(str(msg.data.get("text", "")))
        await _send(ws, "send.result", {"outcome": outcome.value})

    elif msg.type == "logout":
        await session.logout()

    elif msg.type == "force_logout":
        await session.force_logout()

    elif msg.type == "hold.press":
        await session.press_hold()

    elif msg.type == "hold.release":
        await session.release_hold()

    elif msg.type == "notice.dismiss":
        await session.dismiss_notice()

    else:
        await _send(ws, "error", {"code": "unknown_type", "type": msg.type})


@router.websocket("/ws/room")
async def ws_room(
    websocket: WebSocket,
    store: StoreDep,
    auth: AuthDep,
    token: str = Query(...),
) -> None:
    try:
        principal = await auth.verify(token)
    except AuthError:
        logger.debug("WS room auth failed", exc_info=True)
        await websocket.close(code=4001, reason="Authentication failed")
        return

    await websocket.accept()

    async def _push(messages: list[RoomMessage]) -> None:
        items = [
            RoomMessageResponse.model_validate(m, from_attributes=True).model_dump(mode="json")
            for m in messages
        ]
        await _send(websocket, "room.snapshot", {"messages": items})

    unsubscribe = await room_service.watch_room(settings.ROOM_COLLECTION, store, _push)
    heartbeat_task = asyncio.create_task(_heartbeat(websocket), name="ws-heartbeat-room")
    try:
        await _room_loop(websocket, principal, store)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS room error for %s", principal.uid)
    finally:
        heartbeat_task.cancel()
        unsubscribe()


async def _room_loop(ws: WebSocket, principal: Principal, store: DocumentStore) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send(ws, "error", {"code": "invalid_payload"})
            continue

        if msg.type == "ping":
            await _send(ws, "pong", {})

        elif msg.type == "message.send":
            try:
                await room_service.send_room_message(
                    principal, str(msg.data.get("text", "")), settings.ROOM_COLLECTION, store,
                )
            except AppError as exc:
                await _send(ws, "error", {"code": "send_failed", "detail": exc.detail})

        else:
            await _send(ws, "error", {"code": "unknown_type", "type": msg.type})
