from __future__ import annotations

from private_chat.application.dto.principal import Principal
from private_chat.application.exceptions import ForbiddenError


def assert_master(principal: Principal) -> None:
    if not principal.is_master:
        raise ForbiddenError("Master access required")
