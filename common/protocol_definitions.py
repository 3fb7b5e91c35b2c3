"""
Protocol definitions for the Chat Relay system.

This module defines the frame envelope, the ChatEvent structure and the
message constructors used between client and server components.

Every frame is a JSON text message shaped ``{"event": <name>, "data": {...}}``.
Payload-less events (``reset``, ``heartbeat-ping``, ``heartbeat-pong``) omit
``data``. ChatEvent fields travel in camelCase on the wire.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple

from common.constants import EventNames, EventKinds


class ProtocolError(Exception):
    """Base class for protocol errors."""


class MalformedEvent(ProtocolError):
    """Raised when a frame or its payload is missing required fields."""


# wire name -> attribute name
_WIRE_FIELDS = {
    'kind': 'kind',
    'sender': 'sender',
    'senderAvatarRef': 'sender_avatar_ref',
    'content': 'content',
    'name': 'name',
    'payload': 'payload',
    'mimeType': 'mime_type',
    'timestamp': 'timestamp',
}

_REQUIRED_FIELDS = {
    EventKinds.TEXT: ('sender', 'content'),
    EventKinds.FILE: ('sender', 'name', 'payload', 'mimeType'),
    EventKinds.SYSTEM: ('content',),
}


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass
class ChatEvent:
    """Chat event structure, discriminated by ``kind``."""
    kind: str
    sender: Optional[str] = None
    content: Optional[str] = None
    name: Optional[str] = None
    payload: Optional[str] = None
    mime_type: Optional[str] = None
    sender_avatar_ref: Optional[str] = None
    timestamp: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, allow_system: bool = False) -> 'ChatEvent':
        """
        Build an event from a wire payload.

        Raises MalformedEvent if the payload is not an object, the kind is
        unknown, or a required field is missing or not a string. Clients may
        not send ``system`` events unless ``allow_system`` is set.
        """
        if not isinstance(data, dict):
            raise MalformedEvent("message payload must be an object")

        kind = data.get('kind')
        allowed = tuple(_REQUIRED_FIELDS) if allow_system else EventKinds.CLIENT_KINDS
        if kind not in allowed:
            raise MalformedEvent(f"unsupported message kind: {kind!r}")

        for wire_name in _REQUIRED_FIELDS[kind]:
            value = data.get(wire_name)
            if not isinstance(value, str):
                raise MalformedEvent(f"'{wire_name}' is required for {kind} messages")
        if kind != EventKinds.SYSTEM and not data['sender'].strip():
            raise MalformedEvent("'sender' must not be empty")

        for wire_name in ('senderAvatarRef', 'timestamp'):
            value = data.get(wire_name)
            if value is not None and not isinstance(value, str):
                raise MalformedEvent(f"'{wire_name}' must be a string")

        kwargs = {attr: data.get(wire_name) for wire_name, attr in _WIRE_FIELDS.items()}
        kwargs['extra'] = {k: v for k, v in data.items() if k not in _WIRE_FIELDS}
        if kind == EventKinds.SYSTEM:
            kwargs['sender'] = None
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation; unset optional fields are omitted."""
        result = dict(self.extra)
        for wire_name, attr in _WIRE_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[wire_name] = value
        return result

    @property
    def is_system(self) -> bool:
        return self.kind == EventKinds.SYSTEM


def encode_frame(event: str, data: Optional[Dict[str, Any]] = None) -> str:
    """Serialize an event envelope to a JSON text frame."""
    frame: Dict[str, Any] = {"event": event}
    if data is not None:
        frame["data"] = data
    return json.dumps(frame)


def decode_frame(raw: Any) -> Tuple[str, Any]:
    """
    Parse a JSON text frame into ``(event, data)``.

    Raises MalformedEvent for binary frames, invalid JSON or a missing
    event name.
    """
    if not isinstance(raw, str):
        raise MalformedEvent("expected a text frame")
    try:
        frame = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedEvent(f"invalid JSON: {e}") from e

    if not isinstance(frame, dict):
        raise MalformedEvent("frame must be a JSON object")
    event = frame.get('event')
    if not isinstance(event, str) or not event:
        raise MalformedEvent("frame has no event name")
    return event, frame.get('data')


def parse_display_name(data: Any) -> str:
    """Extract the display name from a join payload."""
    if not isinstance(data, dict):
        raise MalformedEvent("join payload must be an object")
    display_name = data.get('displayName')
    if not isinstance(display_name, str) or not display_name.strip():
        raise MalformedEvent("'displayName' is required to join")
    return display_name.strip()


def create_join_message(display_name: str) -> str:
    """Create a join frame."""
    return encode_frame(EventNames.JOIN, {"displayName": display_name})


def create_text_message(sender: str, content: str, avatar_ref: Optional[str] = None) -> str:
    """Create a text chat frame."""
    event = ChatEvent(
        kind=EventKinds.TEXT,
        sender=sender,
        content=content,
        sender_avatar_ref=avatar_ref,
    )
    return encode_frame(EventNames.MESSAGE, event.to_dict())


def create_file_message(sender: str, name: str, payload: str, mime_type: str,
                        avatar_ref: Optional[str] = None) -> str:
    """Create a file chat frame."""
    event = ChatEvent(
        kind=EventKinds.FILE,
        sender=sender,
        name=name,
        payload=payload,
        mime_type=mime_type,
        sender_avatar_ref=avatar_ref,
    )
    return encode_frame(EventNames.MESSAGE, event.to_dict())


def create_system_event(content: str) -> ChatEvent:
    """Create a system event stamped with the current time."""
    return ChatEvent(kind=EventKinds.SYSTEM, content=content, timestamp=utc_timestamp())


def create_chat_frame(event: ChatEvent) -> str:
    """Create the outbound frame for a chat event."""
    name = EventNames.SYSTEM_NOTICE if event.is_system else EventNames.MESSAGE
    return encode_frame(name, event.to_dict())


def create_reset_message() -> str:
    """Create a reset frame."""
    return encode_frame(EventNames.RESET)


def create_heartbeat_ping_message() -> str:
    """Create a heartbeat ping frame."""
    return encode_frame(EventNames.HEARTBEAT_PING)


def create_heartbeat_pong_message() -> str:
    """Create a heartbeat pong frame."""
    return encode_frame(EventNames.HEARTBEAT_PONG)
