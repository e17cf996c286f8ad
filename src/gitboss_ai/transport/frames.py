"""
Chat frame construction and parsing.
"""

import json

from pydantic import ValidationError

from gitboss_ai.errors import MalformedFrame
from gitboss_ai.models.message import InboundFrame, OutboundMessage


def build_message_frame(content: str, timestamp: int) -> str:
    """Serialize a client → server chat message."""
    return OutboundMessage(content=content, timestamp=timestamp).model_dump_json()


def parse_frame(raw: str) -> InboundFrame:
    """Parse a server → client frame. Raises MalformedFrame for anything that isn't a typed JSON object."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedFrame(f"Invalid JSON: {e}", raw=raw)
    if not isinstance(data, dict):
        raise MalformedFrame("Frame is not a JSON object", raw=raw)
    try:
        return InboundFrame.model_validate(data)
    except ValidationError as e:
        raise MalformedFrame(f"Invalid frame: {e.error_count()} error(s)", raw=raw)
