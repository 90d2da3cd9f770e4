"""Shared fixtures for conch tests."""

import pytest

from conch.blast import Blast


def make_blasts(*ids: int) -> list[Blast]:
    """Blasts with the given ids, in the order given."""
    return [Blast(id=i, user=f"user{i}", content=f"blast number {i}") for i in ids]


def ids_of(window) -> list[int]:
    from conch.blastlist import walk
    return [node.blast.id for node in walk(window)]


class FakeFetcher:
    """Records requests instead of talking to a backend."""

    def __init__(self):
        self.requests: list[tuple] = []
        self.posts: list[tuple] = []

    def request(self, kind, boundary):
        self.requests.append((kind, boundary))

    def post(self, user, content):
        self.posts.append((user, content))


@pytest.fixture
def fetcher():
    return FakeFetcher()
