"""
The in-memory feed window: a doubly linked list of fetched blasts.

Walking from the head via ``next`` visits strictly decreasing ids: the head is
the newest blast we know about, the tail the oldest one loaded so far.  An
empty window is plain ``None``.

Nodes are created only when a fetched batch is merged in.  They are never
copied and their blast never changes; merges only relink the boundary nodes,
so a reference to a node (the list view's selection) stays valid however much
the window grows around it.

The merge functions trust their input: batches must be newest-first and must
not overlap the window.  Filtering late or overlapping replies is the feed
coordinator's job.
"""

from typing import Iterable, Iterator, Optional

from conch.blast import Blast


class BlastNode:
    __slots__ = ("blast", "prev", "next")

    def __init__(self, blast: Blast):
        self.blast = blast
        self.prev: Optional["BlastNode"] = None
        self.next: Optional["BlastNode"] = None

    @property
    def id(self) -> int:
        return self.blast.id

    def __repr__(self):
        return f"<BlastNode {self.blast.id} @{self.blast.user}>"


def empty() -> Optional[BlastNode]:
    return None


def from_batch(blasts: Optional[Iterable[Blast]]) -> Optional[BlastNode]:
    """Link a newest-first batch into a window. Returns its head, or None."""
    if not blasts:
        return None
    head = None
    last = None
    for blast in blasts:
        node = BlastNode(blast)
        if last is None:
            head = node
        else:
            last.next = node
            node.prev = last
        last = node
    return head


def tail_of(window: Optional[BlastNode]) -> Optional[BlastNode]:
    node = window
    if node is None:
        return None
    while node.next is not None:
        node = node.next
    return node


def walk(window: Optional[BlastNode]) -> Iterator[BlastNode]:
    node = window
    while node is not None:
        yield node
        node = node.next


def length(window: Optional[BlastNode]) -> int:
    return sum(1 for _ in walk(window))


def _splice(upper_tail: BlastNode, lower_head: BlastNode):
    upper_tail.next = lower_head
    lower_head.prev = upper_tail


def join(lhs: Optional[BlastNode], rhs: Optional[BlastNode],
         lhs_tail: Optional[BlastNode] = None) -> Optional[BlastNode]:
    """Hang ``rhs`` off the end of ``lhs`` and return the combined head.

    Either side may be None.  ``lhs`` must hold the newer blasts; this is not
    checked.  Pass ``lhs_tail`` if it is already known to skip the walk.
    """
    if lhs is None:
        return rhs
    if rhs is None:
        return lhs
    _splice(lhs_tail if lhs_tail is not None else tail_of(lhs), rhs)
    return lhs


def prepend_newer(window: Optional[BlastNode],
                  batch: Optional[Iterable[Blast]]) -> Optional[BlastNode]:
    """Put a newest-first batch of newer blasts in front of ``window``.

    Costs only the batch: ``window`` itself is never walked.
    """
    if not batch:
        return window
    newer = from_batch(batch)
    if newer is None:
        return window
    if window is None:
        return newer
    # from_batch already walked the batch; find its tail without touching window.
    newer_tail = newer
    while newer_tail.next is not None:
        newer_tail = newer_tail.next
    _splice(newer_tail, window)
    return newer


def append_older(window: Optional[BlastNode], batch: Optional[Iterable[Blast]],
                 tail: Optional[BlastNode] = None) -> Optional[BlastNode]:
    """Hang a newest-first batch of older blasts off the tail of ``window``.

    With ``tail`` supplied the splice is O(1); otherwise the tail is found by
    walking the window.
    """
    if not batch:
        return window
    return join(window, from_batch(batch), lhs_tail=tail)


def free(window: Optional[BlastNode]):
    """Unlink every node reachable from ``window``."""
    node = window
    while node is not None:
        following = node.next
        node.prev = None
        node.next = None
        node = following
