"""Mint an HS256 custom token, e.g. for the client identity.

    python -m private_chat.scripts.issue_token client_user_12345
"""
from __future__ import annotations

import argparse
import logging

from private_chat.config import settings
from private_chat.infrastructure.auth.hs256_auth import HS256AuthService
from private_chat.logging_config import configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("uid", nargs="?", default=settings.CLIENT_UID)
    parser.add_argument("--ttl", type=int, default=settings.ANONYMOUS_TOKEN_TTL_SECONDS)
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    if not settings.JWT_SECRET:
        parser.error("JWT_SECRET is not set")

    auth = HS256AuthService(settings.JWT_SECRET, settings.CLIENT_UID, settings.JWT_ALGORITHM)
    logger.info("Issuing token for %s (ttl=%ds)", args.uid, args.ttl)
    print(auth.issue_token(args.uid, ttl_seconds=args.ttl))


if __name__ == "__main__":
    main()
