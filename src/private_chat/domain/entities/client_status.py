from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class ClientStatus:
    """Shared status record of the client identity.

    A missing document is represented by the default instance.
    """

    is_logged_in: bool = False
    msg_count: int = 0
    last_login: datetime | None = None
    force_logout: bool = False

    @classmethod
    def from_document(cls, data: dict[str, Any] | None) -> ClientStatus:
        if not data:
            return cls()
        return cls(
            is_logged_in=bool(data.get("isLoggedIn", False)),
            msg_count=int(data.get("msgCount", 0)),
            last_login=data.get("lastLogin"),
            force_logout=bool(data.get("forceLogout", False)),
        )

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "isLoggedIn": self.is_logged_in,
            "msgCount": self.msg_count,
            "forceLogout": self.force_logout,
        }
        if self.last_login is not None:
            doc["lastLogin"] = self.last_login
        return doc
