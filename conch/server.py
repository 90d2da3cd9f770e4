"""
WebSocket backend that serves blasts to ``conch`` viewers.

Protocol (JSON text frames, one request per frame):

    {"type": "recent", "req": 1, "limit": 42}
    {"type": "after",  "req": 2, "id": 17, "limit": 42}
    {"type": "before", "req": 3, "id": 5,  "limit": 42}
    {"type": "post",   "req": 4, "user": "giraffe", "content": "Mmm. Tasty leaves."}

Replies echo ``req``: ``{"type": "blasts", "blasts": [...]}`` (newest first),
``{"type": "posted", "blast": {...}}`` or ``{"type": "error", "error": "..."}``.

HARDENING:
- Max 200 concurrent viewers.
- 64KB max frame size.
- Per-connection rate limit (20 requests/sec).
- Query limits capped at 200 blasts.

The log lives in memory only; restarting the server starts an empty feed.

Run with: conch serve
"""

import asyncio
import json
import logging
import time

from websockets.asyncio.server import serve
from websockets.exceptions import ConnectionClosed

from conch.config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    MAX_CLIENTS,
    MAX_FRAME_BYTES,
    MAX_QUERY_LIMIT,
    PAGE_SIZE,
    RATE_LIMIT_PER_SEC,
    RATE_LIMIT_WINDOW,
)
from conch.store import BlastStore

logger = logging.getLogger(__name__)

_SEED_USERS = ["giraffe", "elephant", "hippo", "lemur", "okapi"]
_SEED_LINES = [
    "Mmm. Tasty leaves.",
    "Splashy splashy water.",
    "Mud, glorious mud!",
    "Anyone seen my tail?",
    "Stripes are back in fashion.",
]


class _RateLimiter:
    __slots__ = ("_timestamps", "_limit", "_window")

    def __init__(self, limit: int = RATE_LIMIT_PER_SEC, window: float = RATE_LIMIT_WINDOW):
        self._timestamps: list[float] = []
        self._limit = limit
        self._window = window

    def allow(self) -> bool:
        now = time.monotonic()
        self._timestamps = [t for t in self._timestamps if now - t < self._window]
        if len(self._timestamps) >= self._limit:
            return False
        self._timestamps.append(now)
        return True


def _limit_of(data: dict) -> int:
    limit = data.get("limit", PAGE_SIZE)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        return PAGE_SIZE
    return min(limit, MAX_QUERY_LIMIT)


def handle_request(store: BlastStore, data: dict) -> dict:
    """Answer one decoded request. Never raises for bad input."""
    req = data.get("req")
    kind = data.get("type")

    if kind in ("after", "before"):
        blast_id = data.get("id")
        if not isinstance(blast_id, int) or isinstance(blast_id, bool):
            return {"type": "error", "req": req, "error": f"{kind} needs an integer id"}
        query = store.after if kind == "after" else store.before
        blasts = query(blast_id, _limit_of(data))
    elif kind == "recent":
        blasts = store.recent(_limit_of(data))
    elif kind == "post":
        try:
            blast = store.add(str(data.get("user", "")), str(data.get("content", "")))
        except ValueError as exc:
            return {"type": "error", "req": req, "error": str(exc)}
        return {"type": "posted", "req": req, "blast": blast.to_dict()}
    else:
        return {"type": "error", "req": req, "error": f"unknown request {kind!r}"}

    return {"type": "blasts", "req": req, "blasts": [b.to_dict() for b in blasts]}


class ConchServer:
    def __init__(self, store: BlastStore, max_clients: int = MAX_CLIENTS):
        self.store = store
        self.max_clients = max_clients
        self.clients = 0
        self.requests = 0
        self.posts = 0
        store.on_new_blast(self._on_new_blast)

    def _on_new_blast(self, blast):
        self.posts += 1
        logger.info("blast %d from @%s", blast.id, blast.user)

    async def handler(self, ws):
        if self.clients >= self.max_clients:
            await ws.close(1013, "server full")
            return

        self.clients += 1
        limiter = _RateLimiter()
        logger.info("viewer connected (%d online)", self.clients)
        try:
            async for raw in ws:
                try:
                    data = json.loads(raw)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    await ws.send(json.dumps({"type": "error", "req": None, "error": "bad json"}))
                    continue

                if not isinstance(data, dict):
                    continue

                if not limiter.allow():
                    await ws.send(json.dumps({
                        "type": "error", "req": data.get("req"), "error": "rate limited",
                    }))
                    continue

                self.requests += 1
                await ws.send(json.dumps(handle_request(self.store, data)))
        except ConnectionClosed as exc:
            logger.debug("viewer dropped: %s", exc)
        finally:
            self.clients -= 1
            logger.info("viewer disconnected (%d online)", self.clients)


def seed_store(store: BlastStore, count: int):
    now = time.time()
    for i in range(count):
        store.add(
            _SEED_USERS[i % len(_SEED_USERS)],
            _SEED_LINES[i % len(_SEED_LINES)],
            posted_at=now - (count - i) * 60,
        )


async def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                     store: BlastStore | None = None, seed: int = 0):
    store = store if store is not None else BlastStore()
    if seed:
        seed_store(store, seed)
    server = ConchServer(store)

    print()
    print("  conch server")
    print("  " + "-" * 12)
    print(f"  listening on ws://{host}:{port}")
    print(f"  {store.count()} blasts in memory")
    print()
    print(f"  limits: {MAX_CLIENTS} viewers, {MAX_FRAME_BYTES // 1024}KB max frame, "
          f"{RATE_LIMIT_PER_SEC} req/s per viewer")
    print()

    async with serve(server.handler, host, port, max_size=MAX_FRAME_BYTES):
        while True:
            await asyncio.sleep(30)
            logger.info("%d viewers | %d blasts (newest #%d) | %d posts | %d requests served",
                        server.clients, store.count(), store.newest_id,
                        server.posts, server.requests)


def main(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, seed: int = 0):
    asyncio.run(run_server(host=host, port=port, seed=seed))
