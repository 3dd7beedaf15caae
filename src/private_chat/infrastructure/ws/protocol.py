"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

OutboundType = Literal["state", "send.result", "room.snapshot", "error", "pong"]


class WsInbound(BaseModel):
    """Browser → Server.

    Session socket: auth | login | send | logout | force_logout | hold.press |
    hold.release | notice.dismiss | ping. Room socket: message.send | ping.
    Unknown types are answered with an error event.
    """

    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Browser."""

    type: OutboundType
    data: dict[str, Any] = {}
