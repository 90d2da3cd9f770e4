"""
Poll coordination: decides what to fetch and folds fetched batches into the
feed window and the list view.

Everything here runs on the UI thread.  Fetches themselves happen on the
fetcher's thread; their results come back as events and are applied through
``on_batch`` / ``on_failure`` between keypresses, so a render never sees a
half-spliced window.
"""

import logging
import time
from typing import Optional, Protocol

from conch import blastlist
from conch.blast import Blast
from conch.blastlist import BlastNode
from conch.config import POLL_INTERVAL, PREFETCH_MARGIN
from conch.listview import ListView

logger = logging.getLogger(__name__)

RECENT = "recent"
NEWER = "newer"
OLDER = "older"


class FetchRequester(Protocol):
    def request(self, kind: str, boundary: Optional[int]) -> None: ...


class Feed:
    def __init__(
        self,
        view: ListView,
        fetcher: FetchRequester,
        poll_interval: float = POLL_INTERVAL,
        prefetch_margin: int = PREFETCH_MARGIN,
    ):
        self.view = view
        self.fetcher = fetcher
        self.poll_interval = poll_interval
        self.prefetch_margin = prefetch_margin

        self.head: Optional[BlastNode] = None
        self.tail: Optional[BlastNode] = None
        self.count = 0
        self.unseen = 0
        self.exhausted = False

        self._pending: set[str] = set()
        self._last_poll = 0.0

    # ------------------------------------------------------------------
    # Boundaries
    # ------------------------------------------------------------------

    @property
    def newest_id(self) -> Optional[int]:
        return self.head.id if self.head is not None else None

    @property
    def oldest_id(self) -> Optional[int]:
        return self.tail.id if self.tail is not None else None

    @property
    def loading(self) -> bool:
        return bool(self._pending)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def start(self):
        self._request(RECENT, None)
        self._last_poll = time.monotonic()

    def tick(self, now: Optional[float] = None):
        now = time.monotonic() if now is None else now
        if now - self._last_poll < self.poll_interval:
            return
        self._last_poll = now
        if self.head is None:
            self._request(RECENT, None)
        else:
            self._request(NEWER, self.head.id)

    def request_older(self):
        if self.tail is None or self.exhausted:
            return
        self._request(OLDER, self.tail.id)

    def _request(self, kind: str, boundary: Optional[int]):
        # One reply per direction at a time; "recent" and "newer" both grow the head.
        head_kinds = {RECENT, NEWER}
        if kind in self._pending or (kind in head_kinds and self._pending & head_kinds):
            return
        self._pending.add(kind)
        logger.debug("requesting %s (boundary=%s)", kind, boundary)
        self.fetcher.request(kind, boundary)

    # ------------------------------------------------------------------
    # Navigation (the input layer's only mutators)
    # ------------------------------------------------------------------

    def select_next(self):
        at_tail = self.view.select_next()
        if at_tail or self.view.distance_to_tail(self.prefetch_margin) < self.prefetch_margin:
            self.request_older()

    def select_prev(self):
        self.view.select_prev()
        if self.view.at_top:
            self.unseen = 0

    def jump_to_top(self):
        self.view.jump_to_top()
        self.unseen = 0

    def toggle_stick_to_top(self) -> bool:
        self.view.toggle_stick_to_top()
        return self.view.stick_to_top

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def on_batch(self, kind: str, boundary: Optional[int], blasts: list[Blast]) -> int:
        """Merge one fetched batch. Returns how many blasts were added."""
        self._pending.discard(kind)
        was_at_top = self.view.current is None or self.view.at_top

        if kind == OLDER:
            added = self._merge_older(blasts)
        elif kind in (RECENT, NEWER):
            added = self._merge_newer(blasts)
        else:
            logger.warning("ignoring batch of unknown kind %r", kind)
            return 0

        self.view.update(self.head)

        if kind != OLDER and added:
            if was_at_top and self.view.stick_to_top:
                self.view.jump_to_top()
                self.unseen = 0
            elif self.view.current is not self.head:
                # keep the same rows on screen while the feed grows above them
                self.view.offset += added
                self.unseen += added
        logger.debug("merged %d %s blasts (window=%d)", added, kind, self.count)
        return added

    def _merge_newer(self, blasts: list[Blast]) -> int:
        if self.head is not None:
            # a late or overlapping reply: keep only what is above the head
            blasts = [b for b in blasts if b.id > self.head.id]
        if not blasts:
            return 0
        self.head = blastlist.prepend_newer(self.head, blasts)
        if self.tail is None:
            self.tail = blastlist.tail_of(self.head)
        self.count += len(blasts)
        return len(blasts)

    def _merge_older(self, blasts: list[Blast]) -> int:
        if self.tail is not None:
            blasts = [b for b in blasts if b.id < self.tail.id]
        if not blasts:
            self.exhausted = True
            logger.info("reached the start of the feed")
            return 0
        old_tail = self.tail
        self.head = blastlist.append_older(self.head, blasts, tail=old_tail)
        self.tail = blastlist.tail_of(old_tail if old_tail is not None else self.head)
        self.count += len(blasts)
        return len(blasts)

    def on_failure(self, kind: str, error: str):
        self._pending.discard(kind)
        logger.warning("%s fetch failed: %s", kind, error)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self):
        self.view.update(None)
        blastlist.free(self.head)
        self.head = None
        self.tail = None
        self.count = 0
