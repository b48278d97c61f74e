"""Message visibility and ownership rules."""
import logging
from typing import List, Optional

from sqlalchemy import and_, or_

from .errors import InvalidInput, NotFound, Unauthorized
from .models import (
    BROADCAST_TARGET,
    Broadcast,
    Message,
    MessageKind,
    Recipient,
    clock_label,
    parse_recipient,
)
from .registry import ParticipantRegistry
from .store import Store

logger = logging.getLogger(__name__)

# kinds a participant may send; status notices are system generated
USER_KINDS = (MessageKind.BROADCAST, MessageKind.PRIVATE)


def validate_body(to, text, kind):
    """Check a message body and return ``(recipient, text, kind)``."""
    try:
        recipient: Recipient = parse_recipient(to)
    except ValueError:
        raise InvalidInput("Invalid recipient")

    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Message text is required")

    try:
        kind = MessageKind(kind)
    except ValueError:
        raise InvalidInput("Unknown message type")
    if kind not in USER_KINDS:
        raise InvalidInput("Unknown message type")

    if kind is MessageKind.PRIVATE and isinstance(recipient, Broadcast):
        raise InvalidInput("Private messages need a recipient")

    return recipient, text, kind


# ids are signed 64-bit integer keys
MAX_MESSAGE_ID = 2**63 - 1


def _message_key(message_id) -> int:
    if isinstance(message_id, str) and message_id.isascii() and message_id.isdigit():
        message_id = int(message_id)
    if (
        isinstance(message_id, int)
        and not isinstance(message_id, bool)
        and 0 < message_id <= MAX_MESSAGE_ID
    ):
        return message_id
    raise NotFound("Message not found")


class MessageRouter:
    def __init__(self, store: Store, registry: ParticipantRegistry):
        self.store = store
        self.registry = registry

    async def send(self, sender, to, text, kind) -> int:
        if not await self.registry.is_present(sender):
            raise Unauthorized("Unknown sender")
        recipient, text, kind = validate_body(to, text, kind)

        message = await self.store.insert(Message(
            sender=sender,
            recipient=str(recipient),
            text=text,
            kind=kind,
            time=clock_label(),
        ))
        logger.debug("%s -> %s (%s)", sender, recipient, kind.value)
        return message.id

    async def list_visible(self, requester, limit: Optional[int] = None) -> List[Message]:
        """Messages ``requester`` may see, oldest first.

        With ``limit``, only the most recent ``limit`` of those are returned.
        """
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            raise InvalidInput("limit must be a positive integer")

        visible = or_(
            Message.recipient == BROADCAST_TARGET,
            Message.sender == requester,
            and_(Message.recipient == requester, Message.kind == MessageKind.PRIVATE),
        )
        if limit is None:
            return list(await self.store.find_many(Message, visible, order_by=Message.id))

        newest = await self.store.find_many(
            Message, visible, order_by=Message.id.desc(), limit=limit
        )
        return list(reversed(newest))

    async def _owned(self, message_id, requester) -> Message:
        message = await self.store.find_one(Message, Message.id == _message_key(message_id))
        if message is None:
            raise NotFound("Message not found")
        if message.sender != requester:
            raise Unauthorized("Only the sender can change this message")
        return message

    async def update(self, message_id, requester, to, text, kind) -> None:
        if not await self.registry.is_present(requester):
            raise Unauthorized("Unknown participant")
        recipient, text, kind = validate_body(to, text, kind)

        message = await self._owned(message_id, requester)
        await self.store.update_one(
            Message,
            message.id,
            {"recipient": str(recipient), "text": text, "kind": kind},
            Message.sender == requester,
        )
        logger.debug("%s edited message %s", requester, message.id)

    async def delete(self, message_id, requester) -> None:
        if not await self.registry.is_present(requester):
            raise NotFound("Unknown participant")

        message = await self._owned(message_id, requester)
        await self.store.delete_one(Message, message.id, Message.sender == requester)
        logger.debug("%s deleted message %s", requester, message.id)
