"""
Object model of a parsed demo as far as the fixup needs it.

Parsing and saving is done by a codec outside of this package. A codec
turns the raw file into a ``Demo`` and writes a (possibly modified)
``Demo`` back out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass
class SendTable:
    name: str
    net_table_name: str
    props: list[Any] = field(default_factory=list)


@dataclass
class ServerClass:
    class_id: int
    class_name: str
    data_table_name: str


@dataclass
class DataTableMessage:
    """The message describing every networked table and server class of the game."""
    tables: list[SendTable] = field(default_factory=list)
    server_classes: list[ServerClass] = field(default_factory=list)


@dataclass
class Demo:
    game_directory: str
    map_name: str
    size: int = 0
    messages: list[Any] = field(default_factory=list)

    def find_data_table(self) -> Optional[DataTableMessage]:
        for message in self.messages:
            if isinstance(message, DataTableMessage):
                return message
        return None


@runtime_checkable
class DemoCodec(Protocol):
    def parse(self, data: bytes) -> Demo:
        ...

    def save(self, demo: Demo, size_hint: int) -> bytes:
        ...
