"""
Chat messages and WebSocket frames.
"""

import random
import string
import time
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ASSISTANT_SENDER = "GitBoss AI"
FALLBACK_USER_SENDER = "You"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message_id(timestamp_ms: Optional[int] = None) -> str:
    """``msg_<epoch-ms>_<7 base36 chars>``"""
    ts = timestamp_ms if timestamp_ms is not None else now_ms()
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"msg_{ts}_{suffix}"


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    content: str
    sender: str
    timestamp: int
    is_from_user: bool = Field(alias="isFromUser")

    @classmethod
    def from_user(cls, content: str, sender: str, timestamp: Optional[int] = None) -> "ChatMessage":
        ts = timestamp if timestamp is not None else now_ms()
        return cls(id=new_message_id(ts), content=content, sender=sender, timestamp=ts, is_from_user=True)

    @classmethod
    def from_assistant(cls, content: str, timestamp: Optional[int] = None) -> "ChatMessage":
        ts = timestamp if timestamp is not None else now_ms()
        return cls(id=new_message_id(ts), content=content, sender=ASSISTANT_SENDER, timestamp=ts, is_from_user=False)


class OutboundMessage(BaseModel):
    type: Literal["message"] = "message"
    content: str
    timestamp: int


class InboundFrame(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    content: Optional[str] = None


class FrameType:
    RESPONSE = "response"
    ERROR = "error"
    CONNECTION_SUCCESSFUL = "connection_successful"
