"""
Async client for a ``conch serve`` backend.

One WebSocket carries every query.  Each request is tagged with a ``req``
number and the reply with the same number resolves it, so a slow "before"
page never holds up an "after" poll.
"""

import asyncio
import itertools
import json
import logging
from typing import Optional

import websockets

from conch.blast import Blast, blasts_from_dicts
from conch.config import DEFAULT_SERVER, MAX_FRAME_BYTES, PAGE_SIZE, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """The backend could not answer: unreachable, timed out, or refused."""


class Mouthpiece:
    def __init__(self, url: str = DEFAULT_SERVER, page_size: int = PAGE_SIZE,
                 timeout: float = REQUEST_TIMEOUT):
        self.url = url
        self.page_size = page_size
        self.timeout = timeout
        self._ws = None
        self._reader: Optional[asyncio.Task] = None
        self._waiting: dict[int, asyncio.Future] = {}
        self._req_ids = itertools.count(1)
        self._connect_lock: Optional[asyncio.Lock] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self):
        if self._connect_lock is None:
            self._connect_lock = asyncio.Lock()
        async with self._connect_lock:
            if self._ws is not None:
                return
            try:
                self._ws = await websockets.connect(
                    self.url, max_size=MAX_FRAME_BYTES, open_timeout=self.timeout,
                )
            except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as exc:
                raise BackendError(f"cannot reach {self.url}: {exc}") from exc
            logger.info("connected to %s", self.url)
            self._reader = asyncio.create_task(self._read_loop(self._ws))

    async def close(self):
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        if self._reader is not None:
            self._reader.cancel()
            self._reader = None
        self._fail_waiting("connection closed")

    def _fail_waiting(self, reason: str):
        waiting, self._waiting = self._waiting, {}
        for fut in waiting.values():
            if not fut.done():
                fut.set_exception(BackendError(reason))

    async def _read_loop(self, ws):
        try:
            async for raw in ws:
                try:
                    data = json.loads(raw)
                except (json.JSONDecodeError, UnicodeDecodeError):
                    logger.warning("dropping undecodable frame from %s", self.url)
                    continue
                if not isinstance(data, dict):
                    continue
                fut = self._waiting.pop(data.get("req"), None)
                if fut is not None and not fut.done():
                    fut.set_result(data)
        except websockets.ConnectionClosed as exc:
            logger.info("connection to %s closed: %s", self.url, exc)
        finally:
            if self._ws is ws:
                self._ws = None
            self._fail_waiting("connection lost")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def _call(self, payload: dict) -> dict:
        await self.connect()
        ws = self._ws
        if ws is None:
            raise BackendError(f"not connected to {self.url}")
        req = next(self._req_ids)
        payload["req"] = req
        fut = asyncio.get_running_loop().create_future()
        self._waiting[req] = fut
        try:
            await ws.send(json.dumps(payload))
            reply = await asyncio.wait_for(fut, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise BackendError(f"{payload['type']} timed out after {self.timeout}s") from None
        except websockets.WebSocketException as exc:
            raise BackendError(f"{payload['type']} failed: {exc}") from exc
        finally:
            self._waiting.pop(req, None)

        if reply.get("type") == "error":
            raise BackendError(str(reply.get("error", "backend error")))
        return reply

    async def _query(self, kind: str, blast_id: Optional[int] = None) -> list[Blast]:
        payload = {"type": kind, "limit": self.page_size}
        if blast_id is not None:
            payload["id"] = blast_id
        reply = await self._call(payload)
        try:
            return blasts_from_dicts(reply.get("blasts"))
        except ValueError as exc:
            raise BackendError(f"malformed {kind} reply: {exc}") from exc

    async def recent(self) -> list[Blast]:
        return await self._query("recent")

    async def after(self, blast_id: int) -> list[Blast]:
        return await self._query("after", blast_id)

    async def before(self, blast_id: int) -> list[Blast]:
        return await self._query("before", blast_id)

    async def post(self, user: str, content: str) -> Blast:
        reply = await self._call({"type": "post", "user": user, "content": content})
        try:
            return Blast.from_dict(reply.get("blast"))
        except ValueError as exc:
            raise BackendError(f"malformed post reply: {exc}") from exc
