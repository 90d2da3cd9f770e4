import asyncio
import logging
import queue
import threading
from typing import Optional

from conch.mouthpiece import BackendError, Mouthpiece

logger = logging.getLogger(__name__)


class Fetcher:
    """Runs the backend client on its own thread and event loop.

    The UI thread calls ``request`` / ``post``; results come back on
    ``ui_queue`` as ``("batch", kind, boundary, blasts)``,
    ``("fetch_failed", kind, message)``, ``("posted", blast)``,
    ``("error", message)`` for a failed post, or ``("status", text)``.
    A slow or dead backend therefore never blocks keypress handling.
    """

    def __init__(self, mouthpiece: Mouthpiece, ui_queue: queue.Queue):
        self.mouthpiece = mouthpiece
        self.ui_queue = ui_queue
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._was_connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        self._thread = threading.Thread(target=self._main, name="conch-fetcher", daemon=True)
        self._thread.start()
        self._ready.wait()

    def _main(self):
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)
        self._ready.set()
        try:
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self.mouthpiece.close())
            self._loop.close()

    def stop(self):
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=2)

    # ------------------------------------------------------------------
    # Requests from the UI thread
    # ------------------------------------------------------------------

    def request(self, kind: str, boundary: Optional[int]):
        self._submit(self._fetch(kind, boundary))

    def post(self, user: str, content: str):
        self._submit(self._post(user, content))

    def _submit(self, coro):
        if self._loop is None:
            coro.close()
            raise RuntimeError("fetcher not started")
        asyncio.run_coroutine_threadsafe(coro, self._loop)

    # ------------------------------------------------------------------
    # Work on the fetcher loop
    # ------------------------------------------------------------------

    async def _fetch(self, kind: str, boundary: Optional[int]):
        try:
            if kind == "older":
                blasts = await self.mouthpiece.before(boundary)
            elif kind == "newer" and boundary is not None:
                blasts = await self.mouthpiece.after(boundary)
            else:
                blasts = await self.mouthpiece.recent()
        except BackendError as exc:
            self._note_connection()
            self.ui_queue.put(("fetch_failed", kind, str(exc)))
            return
        except Exception as exc:
            # the feed waits on this reply; it must always hear back
            logger.exception("%s fetch crashed", kind)
            self.ui_queue.put(("fetch_failed", kind, f"{type(exc).__name__}: {exc}"))
            return
        self._note_connection()
        self.ui_queue.put(("batch", kind, boundary, blasts))

    async def _post(self, user: str, content: str):
        try:
            blast = await self.mouthpiece.post(user, content)
        except BackendError as exc:
            self.ui_queue.put(("error", f"post failed: {exc}"))
            return
        except Exception as exc:
            logger.exception("post crashed")
            self.ui_queue.put(("error", f"post failed: {exc}"))
            return
        self.ui_queue.put(("posted", blast))

    def _note_connection(self):
        connected = self.mouthpiece.connected
        if connected != self._was_connected:
            self._was_connected = connected
            text = "connected" if connected else "disconnected"
            logger.info("backend %s", text)
            self.ui_queue.put(("status", text))
