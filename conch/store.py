import threading
import time
from typing import Callable

from conch.blast import Blast, create_blast


class BlastStore:
    """Append-only blast log. Ids start at 1 and only ever grow.

    Every query answers newest-first, the order the feed window links them in.
    """

    def __init__(self):
        self._blasts: list[Blast] = []
        self._lock = threading.Lock()
        self._on_new: list[Callable[[Blast], None]] = []

    def add(self, user: str, content: str, posted_at: float | None = None) -> Blast:
        with self._lock:
            blast = create_blast(
                len(self._blasts) + 1, user, content,
                posted_at=time.time() if posted_at is None else posted_at,
            )
            self._blasts.append(blast)
        for cb in self._on_new:
            cb(blast)
        return blast

    def on_new_blast(self, callback: Callable[[Blast], None]):
        self._on_new.append(callback)

    def count(self) -> int:
        with self._lock:
            return len(self._blasts)

    @property
    def newest_id(self) -> int:
        with self._lock:
            return self._blasts[-1].id if self._blasts else 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def recent(self, limit: int) -> list[Blast]:
        with self._lock:
            return self._newest_first(max(0, len(self._blasts) - limit), len(self._blasts))

    def after(self, blast_id: int, limit: int) -> list[Blast]:
        """The ``limit`` blasts immediately after ``blast_id``.

        Taking the oldest of the newer blasts means a feed that polls with its
        head id closes the gap a page at a time instead of skipping over it.
        """
        with self._lock:
            start = min(max(0, blast_id), len(self._blasts))
            return self._newest_first(start, min(len(self._blasts), start + limit))

    def before(self, blast_id: int, limit: int) -> list[Blast]:
        with self._lock:
            end = min(max(0, blast_id - 1), len(self._blasts))
            return self._newest_first(max(0, end - limit), end)

    def _newest_first(self, start: int, end: int) -> list[Blast]:
        if end <= start:
            return []
        return self._blasts[start:end][::-1]
