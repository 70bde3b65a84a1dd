"""
Messages sent by the server to the bot over the websocket connection.

Every frame is a JSON object of the form ``{"type": ..., "data": {...}}``:

- ``upload``: a render finished and the video is available.
- ``error``: a render failed.
- ``config``: the server pushes settings the bot has to respect.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Optional, Union

from autorender.utils.errors import ProtocolError


class FrameType(str, enum.Enum):
    UPLOAD = "upload"
    ERROR = "error"
    CONFIG = "config"


@dataclass(frozen=True)
class UploadFrame:
    share_id: str
    title: Optional[str]
    requested_by_id: int
    requested_in_guild_id: Optional[int] = None
    requested_in_channel_id: Optional[int] = None


@dataclass(frozen=True)
class ErrorFrame:
    share_id: str
    status: int
    message: str
    requested_by_id: int
    requested_in_guild_id: Optional[int] = None
    requested_in_channel_id: Optional[int] = None


@dataclass(frozen=True)
class ConfigFrame:
    max_demo_file_size: int


Frame = Union[UploadFrame, ErrorFrame, ConfigFrame]
TerminalFrame = Union[UploadFrame, ErrorFrame]


def _snowflake(value, field: str, optional: bool = False) -> Optional[int]:
    # Discord ids arrive as strings since they do not fit into a JS number.
    if value is None or value == "":
        if optional:
            return None
        raise ProtocolError(f"Missing field {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ProtocolError(f"Invalid id in field {field}: {value!r}") from None


def _require(data: dict, field: str):
    try:
        return data[field]
    except KeyError:
        raise ProtocolError(f"Missing field {field}") from None


def decode(payload: dict) -> Frame:
    """Turn an already decoded JSON object into a frame."""
    if not isinstance(payload, dict):
        raise ProtocolError(f"Expected an object, got {type(payload).__name__}")

    kind = payload.get("type")
    data = payload.get("data")
    if not isinstance(data, dict):
        raise ProtocolError(f"Frame {kind!r} has no data object")

    try:
        frame_type = FrameType(kind)
    except ValueError:
        raise ProtocolError(f"Unknown message type {kind!r}") from None

    match frame_type:
        case FrameType.UPLOAD:
            return UploadFrame(
                share_id=str(_require(data, "share_id")),
                title=data.get("title"),
                requested_by_id=_snowflake(data.get("requested_by_id"), "requested_by_id"),
                requested_in_guild_id=_snowflake(
                    data.get("requested_in_guild_id"), "requested_in_guild_id", True
                ),
                requested_in_channel_id=_snowflake(
                    data.get("requested_in_channel_id"), "requested_in_channel_id", True
                ),
            )
        case FrameType.ERROR:
            try:
                status = int(_require(data, "status"))
            except (TypeError, ValueError):
                raise ProtocolError(f"Invalid status {data.get('status')!r}") from None
            return ErrorFrame(
                share_id=str(_require(data, "share_id")),
                status=status,
                message=str(_require(data, "message")),
                requested_by_id=_snowflake(data.get("requested_by_id"), "requested_by_id"),
                requested_in_guild_id=_snowflake(
                    data.get("requested_in_guild_id"), "requested_in_guild_id", True
                ),
                requested_in_channel_id=_snowflake(
                    data.get("requested_in_channel_id"), "requested_in_channel_id", True
                ),
            )
        case FrameType.CONFIG:
            size = _require(data, "maxDemoFileSize")
            if isinstance(size, bool) or not isinstance(size, int) or size < 0:
                raise ProtocolError(f"Invalid maxDemoFileSize {size!r}")
            return ConfigFrame(max_demo_file_size=size)


def parse(raw: Union[str, bytes]) -> Frame:
    """
    Parse a text frame received from the server.

    Raises json.JSONDecodeError when the text is not JSON at all (the server
    also sends plain log lines) and ProtocolError when it is JSON but not a
    frame this bot understands. Binary frames are decoded as UTF-8 first,
    invalid bytes end up as replacement characters.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", "replace")
    payload = json.loads(raw)
    try:
        return decode(payload)
    except ProtocolError as e:
        e.raw = raw
        raise
