import threading
import time
from dataclasses import dataclass, field
from typing import Any, Optional

# Discord lets a bot edit its interaction response for 15 minutes.
MAX_INTERACTION_AGE = 15 * 60  # seconds
SWEEP_INTERVAL = 60  # seconds


@dataclass
class InteractionEntry:
    """Who asked for a render and how to answer them."""
    share_id: str
    interaction: Any  # discord.Interaction; only used to edit the original response
    user_id: int
    timestamp: float = field(default_factory=time.time)


class InteractionCache:
    """
    Maps a render's share id to the interaction that requested it.

    Entries are consumed once by ``take`` when the server reports the
    render as finished or failed. Entries that are never consumed are
    dropped by ``sweep`` once the interaction can no longer be edited.
    """

    def __init__(self):
        self._entries: dict[str, InteractionEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, share_id: str) -> bool:
        return share_id in self._entries

    def put(
        self,
        share_id: str,
        interaction: Any,
        user_id: int,
        now: Optional[float] = None,
    ) -> InteractionEntry:
        entry = InteractionEntry(
            share_id=share_id,
            interaction=interaction,
            user_id=user_id,
            timestamp=time.time() if now is None else now,
        )
        with self._lock:
            self._entries[share_id] = entry
        return entry

    def take(self, share_id: str) -> Optional[InteractionEntry]:
        with self._lock:
            return self._entries.pop(share_id, None)

    def sweep(self, now: Optional[float] = None, max_age: float = MAX_INTERACTION_AGE) -> None:
        now = time.time() if now is None else now
        with self._lock:
            self._entries = {
                share_id: entry
                for share_id, entry in self._entries.items()
                if entry.timestamp + max_age >= now
            }
