from autorender.demo.fixup import FixupResult, Outcome, repair, repair_bytes
from autorender.demo.models import (
    DataTableMessage,
    Demo,
    DemoCodec,
    SendTable,
    ServerClass,
)

__all__ = [
    "DataTableMessage",
    "Demo",
    "DemoCodec",
    "FixupResult",
    "Outcome",
    "SendTable",
    "ServerClass",
    "repair",
    "repair_bytes",
]
