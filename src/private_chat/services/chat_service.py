from __future__ import annotations

import logging

from private_chat.application.dto.chat import SendResult
from private_chat.application.dto.principal import Principal
from private_chat.application.policies.gating import decide_send
from private_chat.application.policies.permissions import assert_master
from private_chat.application.ports.auth import AuthService
from private_chat.application.ports.clock import Clock
from private_chat.application.ports.store import DocumentStore, Query
from private_chat.domain.entities.client_status import ClientStatus
from private_chat.domain.entities.message import SYSTEM_SENDER_ID, Message
from private_chat.domain.value_objects.enums import SendAction
from private_chat.domain.value_objects.paths import ChatPaths

logger = logging.getLogger(__name__)

# Maximum number of writes the store accepts in one batch.
MAX_BATCH_WRITES = 500

CODE_ACCEPTED_TEXT = "Master: Code received. Client message counter reset."


def history_query(paths: ChatPaths, limit: int | None) -> Query:
    return Query(
        collection=paths.messages_collection,
        order_by="timestamp",
        direction="asc",
        limit=limit,
    )


async def get_client_status(paths: ChatPaths, store: DocumentStore) -> ClientStatus:
    snapshot = await store.get(paths.client_status_doc)
    return ClientStatus.from_document(snapshot.data)


async def list_messages(
    paths: ChatPaths,
    limit: int,
    store: DocumentStore,
) -> list[Message]:
    snapshots = await store.query(history_query(paths, limit))
    return [Message.from_document(s.id, s.data or {}) for s in snapshots]


async def send_message(
    principal: Principal,
    text: str,
    status: ClientStatus,
    paths: ChatPaths,
    store: DocumentStore,
    clock: Clock,
    *,
    special_code: str,
    max_messages: int,
) -> SendResult:
    """Write one chat message, gated against the given client status.

    Client messages and the counter change land in the same batch. Only
    `msgCount` is written to the status document, so flags set concurrently
    by the master survive.
    """
    action = decide_send(
        principal,
        status,
        text,
        special_code=special_code,
        max_messages=max_messages,
    )
    message_path = store.new_document_path(paths.messages_collection)
    message_id = message_path.rsplit("/", 1)[-1]
    now = clock.now()
    batch = store.batch()

    if action == SendAction.RESET_COUNTER:
        new_status = ClientStatus(
            is_logged_in=status.is_logged_in,
            msg_count=0,
            last_login=status.last_login,
            force_logout=status.force_logout,
        )
        message = Message(
            id=message_id,
            text=CODE_ACCEPTED_TEXT,
            sender_id=SYSTEM_SENDER_ID,
            timestamp=now,
        )
        batch.update(paths.client_status_doc, {"msgCount": 0})
        batch.set(message_path, message.to_document())
        await batch.commit()
        logger.info("Special code accepted, counter reset for %s", paths.client_uid)
        return SendResult(action=action, message=message, status=new_status)

    message = Message(
        id=message_id,
        text=text.strip(),
        sender_id=principal.uid,
        timestamp=now,
    )
    batch.set(message_path, message.to_document())
    new_status = status
    if principal.is_client:
        new_status = ClientStatus(
            is_logged_in=status.is_logged_in,
            msg_count=status.msg_count + 1,
            last_login=status.last_login,
            force_logout=status.force_logout,
        )
        batch.update(paths.client_status_doc, {"msgCount": new_status.msg_count})
    await batch.commit()
    return SendResult(action=action, message=message, status=new_status)


async def delete_client_chat_data(paths: ChatPaths, store: DocumentStore) -> int:
    """Delete every message of the conversation, then the client status document."""
    snapshots = await store.query(history_query(paths, None))
    for start in range(0, len(snapshots), MAX_BATCH_WRITES):
        batch = store.batch()
        for snapshot in snapshots[start:start + MAX_BATCH_WRITES]:
            batch.delete(snapshot.path)
        await batch.commit()
    await store.delete(paths.client_status_doc)
    logger.info(
        "Deleted %d messages and status of %s", len(snapshots), paths.conversation_key,
    )
    return len(snapshots)


async def login(
    principal: Principal,
    paths: ChatPaths,
    store: DocumentStore,
    clock: Clock,
) -> ClientStatus | None:
    """Start a fresh client session. Masters have nothing to write."""
    if principal.is_master:
        return None

    await delete_client_chat_data(paths, store)
    status = ClientStatus(
        is_logged_in=True,
        msg_count=0,
        last_login=clock.now(),
        force_logout=False,
    )
    batch = store.batch()
    batch.set(paths.client_status_doc, status.to_document())
    await batch.commit()
    logger.info("Client %s logged in", principal.uid)
    return status


async def logout(
    principal: Principal,
    paths: ChatPaths,
    store: DocumentStore,
    auth: AuthService,
) -> None:
    await auth.sign_out(principal.uid)
    if principal.is_client:
        await delete_client_chat_data(paths, store)
        logger.info("Client %s logged out, chat data deleted", principal.uid)


async def force_logout(
    principal: Principal,
    paths: ChatPaths,
    store: DocumentStore,
) -> None:
    assert_master(principal)
    await store.update(paths.client_status_doc, {"forceLogout": True})
    logger.info("Master %s requested logout of %s", principal.uid, paths.client_uid)
