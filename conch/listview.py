from typing import Optional

from conch.blast import Blast
from conch.blastlist import BlastNode, walk


class ListView:
    """Selection and scroll state over a feed window.

    The view does not own the window; it only points into it.  ``current`` is
    a node reference, not an index, so it keeps naming the same blast while
    newer blasts are spliced in above it.
    """

    def __init__(self, stick_to_top: bool = False):
        self.head: Optional[BlastNode] = None
        self.current: Optional[BlastNode] = None
        self.offset = 0
        self.stick_to_top = stick_to_top

    # ------------------------------------------------------------------
    # Window updates
    # ------------------------------------------------------------------

    def update(self, window: Optional[BlastNode]):
        if window is None:
            self.head = None
            self.current = None
            self.offset = 0
            return
        self.head = window
        if self.current is None:
            self.current = window

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def select_next(self) -> bool:
        """Move toward older blasts. Returns True when sitting on the tail."""
        if self.current is None:
            return False
        if self.current.next is not None:
            self.current = self.current.next
        return self.current.next is None

    def select_prev(self):
        if self.current is not None and self.current.prev is not None:
            self.current = self.current.prev

    def jump_to_top(self):
        if self.head is None:
            return
        self.current = self.head
        self.offset = 0

    def toggle_stick_to_top(self):
        self.stick_to_top = not self.stick_to_top

    # ------------------------------------------------------------------
    # Read-only accessors for rendering
    # ------------------------------------------------------------------

    @property
    def selected(self) -> Optional[Blast]:
        return self.current.blast if self.current is not None else None

    @property
    def at_top(self) -> bool:
        return self.current is not None and self.current is self.head

    @property
    def at_tail(self) -> bool:
        """No older blast is loaded below the selection."""
        return self.current is not None and self.current.next is None

    def distance_to_tail(self, limit: int) -> int:
        """Nodes between the selection and the tail, counting at most ``limit``."""
        steps = 0
        node = self.current
        while node is not None and node.next is not None and steps < limit:
            node = node.next
            steps += 1
        return steps

    def index_of_current(self) -> int:
        if self.current is None:
            return 0
        for i, node in enumerate(walk(self.head)):
            if node is self.current:
                return i
        return 0

    def visible_slice(self, height: int) -> list[BlastNode]:
        if height <= 0 or self.head is None:
            return []
        start = self.head
        skipped = 0
        while skipped < self.offset and start.next is not None:
            start = start.next
            skipped += 1
        rows = []
        for node in walk(start):
            if len(rows) >= height:
                break
            rows.append(node)
        return rows

    # ------------------------------------------------------------------
    # Scrolling
    # ------------------------------------------------------------------

    def scroll_to_current(self, height: int):
        """Adjust ``offset`` so the selection sits inside a ``height``-row viewport."""
        if self.head is None or height <= 0:
            self.offset = 0
            return
        idx = self.index_of_current()
        if idx < self.offset:
            self.offset = idx
        elif idx >= self.offset + height:
            self.offset = idx - height + 1
        self.offset = max(0, self.offset)
