import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from sqlmodel import SQLModel, Field

BROADCAST_TARGET = "Todos"

JOINED_TEXT = "joined"
LEFT_TEXT = "left"

_NAME_RE = re.compile(r"[A-Za-z0-9]{2,50}")
_RECIPIENT_RE = re.compile(r"[A-Za-z0-9]+")


def is_valid_name(name) -> bool:
    """Alphanumeric, 2 to 50 characters, and not the broadcast target."""
    return (
        isinstance(name, str)
        and _NAME_RE.fullmatch(name) is not None
        and name != BROADCAST_TARGET
    )


def clock_label(moment: Optional[datetime] = None) -> str:
    return (moment or datetime.now()).strftime("%H:%M:%S")


class MessageKind(str, Enum):
    BROADCAST = "message"
    PRIVATE = "private_message"
    STATUS = "status"


@dataclass(frozen=True)
class Broadcast:
    def __str__(self):
        return BROADCAST_TARGET


@dataclass(frozen=True)
class Direct:
    name: str

    def __str__(self):
        return self.name


Recipient = Union[Broadcast, Direct]


def parse_recipient(to) -> Recipient:
    if not isinstance(to, str) or not _RECIPIENT_RE.fullmatch(to):
        raise ValueError(f"invalid recipient: {to!r}")
    if to == BROADCAST_TARGET:
        return Broadcast()
    return Direct(to)


class Participant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    # epoch seconds of the last join or status ping
    last_seen: float = Field(index=True)

    def to_public(self) -> dict:
        return {"name": self.name, "lastStatus": int(self.last_seen * 1000)}


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sender: str = Field(index=True)
    recipient: str = Field(index=True)
    text: str
    kind: MessageKind
    time: str = Field(default_factory=clock_label)

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "from": self.sender,
            "to": self.recipient,
            "text": self.text,
            "type": self.kind.value,
            "time": self.time,
        }


def status_message(name: str, text: str) -> Message:
    return Message(
        sender=name,
        recipient=BROADCAST_TARGET,
        text=text,
        kind=MessageKind.STATUS,
    )


# Request bodies

class ParticipantCreate(SQLModel):
    name: Optional[str] = None


class MessageBody(SQLModel):
    to: Optional[str] = None
    text: Optional[str] = None
    type: Optional[str] = None
