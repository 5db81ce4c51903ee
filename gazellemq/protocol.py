"""Wire format spoken between the clients and the hub."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, List, Union

_SEPARATOR = b"|"
_TERMINATOR = "\r"
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class ProtocolError(ValueError):
    """Raised when the hub sends bytes that do not follow the message format."""


class Intent(str, enum.Enum):
    """The role a connection announces to the hub when it opens."""

    SUBSCRIBER = "S"
    PUBLISHER = "P"
    COMMAND = "C"


@dataclass(frozen=True)
class Message:
    """A message delivered by the hub."""

    message_type: str
    content: str


def _to_bytes(text: Union[str, bytes]) -> bytes:
    if isinstance(text, str):
        return text.encode(_ENCODING, _ERRORS)
    return bytes(text)


def encode_message(message_type: str, content: Union[str, bytes]) -> bytes:
    """Frame a message as ``type|length|content``; the length counts bytes."""
    payload = _to_bytes(content)
    header = f"{message_type}|{len(payload)}|".encode(_ENCODING, _ERRORS)
    return header + payload


def handshake_bytes(intent: Intent, name: str) -> bytes:
    """Bytes a client sends right after connecting: its intent, then its name."""
    return f"{Intent(intent).value}{_TERMINATOR}{name}{_TERMINATOR}".encode(
        _ENCODING, _ERRORS
    )


def subscribe_command(subscriber_name: str, message_type: str) -> str:
    """Command asking the hub to route ``message_type`` to ``subscriber_name``."""
    return f"{subscriber_name}|subscribe|{message_type}"


def encode_command_batch(commands: Iterable[str]) -> bytes:
    """Join commands into one carriage-return terminated batch.

    An empty batch encodes to no bytes at all.
    """
    commands = list(commands)
    if not commands:
        return b""
    return (_TERMINATOR.join(commands) + _TERMINATOR).encode(_ENCODING, _ERRORS)


class _State(enum.Enum):
    TYPE = enum.auto()
    LENGTH = enum.auto()
    CONTENT = enum.auto()


class MessageParser:
    """Incremental parser for the ``type|length|content`` stream.

    Bytes may arrive in chunks of any size; every completed message is
    returned by the ``feed`` call that completed it.
    """

    def __init__(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._state = _State.TYPE
        self._type = bytearray()
        self._length_digits = bytearray()
        self._content = bytearray()
        self._remaining = 0

    def _parse_length(self) -> int:
        digits = bytes(self._length_digits)
        if not digits or not digits.isdigit():
            self._reset()
            raise ProtocolError(f"invalid content length: {digits!r}")
        return int(digits)

    def _finish(self) -> Message:
        message = Message(
            self._type.decode(_ENCODING, _ERRORS),
            self._content.decode(_ENCODING, _ERRORS),
        )
        self._reset()
        return message

    def feed(self, data: Union[bytes, bytearray, memoryview, str]) -> List[Message]:
        """Consume ``data`` and return the messages it completes, in order."""
        chunk = _to_bytes(data)
        end = len(chunk)
        pos = 0
        completed: List[Message] = []
        while pos < end:
            if self._state is _State.CONTENT:
                take = min(self._remaining, end - pos)
                self._content += chunk[pos:pos + take]
                pos += take
                self._remaining -= take
                if self._remaining == 0:
                    completed.append(self._finish())
                continue

            sep = chunk.find(_SEPARATOR, pos)
            target = self._type if self._state is _State.TYPE else self._length_digits
            if sep < 0:
                target += chunk[pos:]
                break
            target += chunk[pos:sep]
            pos = sep + 1

            if self._state is _State.TYPE:
                self._state = _State.LENGTH
            else:
                self._remaining = self._parse_length()
                self._state = _State.CONTENT
                if self._remaining == 0:
                    completed.append(self._finish())
        return completed