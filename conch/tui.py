import curses
import logging
import queue
import time
from typing import Callable, Optional

from conch.blast import Blast
from conch.config import INPUT_TIMEOUT_TENTHS, MAX_BLAST_LENGTH
from conch.feed import Feed
from conch.render import RenderContext, render, setup_colors, viewport_height

logger = logging.getLogger(__name__)

KEY_ESC = 27
KEY_ENTERS = (10, 13, curses.KEY_ENTER)
KEY_BACKSPACES = (curses.KEY_BACKSPACE, 127, 8)


class ConchTUI:
    def __init__(
        self,
        feed: Feed,
        ui_queue: queue.Queue,
        ctx: Optional[RenderContext] = None,
        post_cb: Optional[Callable[[str], None]] = None,
    ):
        self.feed = feed
        self.ui_queue = ui_queue
        self.ctx = ctx if ctx is not None else RenderContext()
        self.post_cb = post_cb

        self.mode = "list"
        self.input_mode = False
        self._scr = None

    # ------------------------------------------------------------------
    # Entry
    # ------------------------------------------------------------------

    def run(self, stdscr):
        self._scr = stdscr
        curses.curs_set(0)
        # getch waits at most this long, so the poll timer keeps ticking
        curses.halfdelay(INPUT_TIMEOUT_TENTHS)
        stdscr.clear()
        if curses.has_colors():
            setup_colors()

        self.feed.start()
        while True:
            self.step()
            key = stdscr.getch()
            if key == curses.KEY_RESIZE:
                stdscr.clear()
                continue
            if key == -1:
                continue
            if self.handle_key(key):
                break

    def step(self):
        """Apply fetched batches, poll if due, then redraw."""
        self.drain_events()
        self.feed.tick()
        self.ctx.show_spinner = self.feed.loading
        if self._scr is None:
            return
        rows, _ = self._scr.getmaxyx()
        self.feed.view.scroll_to_current(viewport_height(rows, self.ctx.chrome))
        render(self._scr, self.ctx, self.feed.view, self.mode, self.info())

    def info(self) -> str:
        parts = [f"{self.feed.count} blasts"]
        if self.feed.view.stick_to_top:
            parts.append("stuck to top")
        if self.feed.unseen:
            parts.append(f"{self.feed.unseen} new above")
        return "  ".join(parts)

    # ------------------------------------------------------------------
    # Event queue
    # ------------------------------------------------------------------

    def drain_events(self):
        while True:
            try:
                ev = self.ui_queue.get_nowait()
            except queue.Empty:
                break
            kind = ev[0]
            if kind == "batch":
                _, fetch_kind, boundary, blasts = ev
                self.feed.on_batch(fetch_kind, boundary, blasts)
            elif kind == "fetch_failed":
                _, fetch_kind, message = ev
                self.feed.on_failure(fetch_kind, message)
                self.ctx.flash("backend unavailable", seconds=2.0)
            elif kind == "posted":
                blast: Blast = ev[1]
                self.ctx.flash(f"blasted #{blast.id}")
            elif kind == "error":
                logger.warning("%s", ev[1])
                self.ctx.flash(str(ev[1]))
            elif kind == "status":
                self.ctx.flash(str(ev[1]))

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def handle_key(self, key: int) -> bool:
        """Returns True when the user asked to quit."""
        if self.input_mode:
            self._key_input(key)
            return False
        if self.mode == "detail":
            if key in KEY_ENTERS or key in (KEY_ESC, ord("q")):
                self.mode = "list"
            return False
        return self._key_feed(key)

    def _key_feed(self, key: int) -> bool:
        if key in (ord("q"), ord("Q")):
            return True
        if key in (ord("j"), curses.KEY_DOWN):
            self.feed.select_next()
        elif key in (ord("k"), curses.KEY_UP):
            self.feed.select_prev()
        elif key in (ord("0"), curses.KEY_HOME):
            self.feed.jump_to_top()
        elif key == ord("s"):
            stuck = self.feed.toggle_stick_to_top()
            self.ctx.flash("stick to top: on" if stuck else "stick to top: off")
        elif key in KEY_ENTERS:
            if self.feed.view.selected is not None:
                self.mode = "detail"
        elif key == ord("p"):
            if self.post_cb is None:
                self.ctx.flash("posting not available")
            else:
                self.input_mode = True
                self.ctx.input_prompt = "blast >"
                self.ctx.input_buf = ""
                self._cursor(1)
        return False

    def _key_input(self, key: int):
        if key in (KEY_ESC, 3):
            self._end_input()
            return
        if key in KEY_ENTERS:
            text = self.ctx.input_buf.strip()
            self._end_input()
            if text:
                self.post_cb(text)
                self.ctx.flash("blasting...", seconds=2.0)
            return
        if key in KEY_BACKSPACES:
            self.ctx.input_buf = self.ctx.input_buf[:-1]
            return
        if 32 <= key <= 126 and len(self.ctx.input_buf) < MAX_BLAST_LENGTH:
            self.ctx.input_buf += chr(key)

    def _end_input(self):
        self.input_mode = False
        self.ctx.input_prompt = None
        self.ctx.input_buf = ""
        self._cursor(0)

    def _cursor(self, visibility: int):
        if self._scr is None:
            return
        try:
            curses.curs_set(visibility)
        except curses.error:
            pass


def run_tui(tui: ConchTUI):
    started = time.monotonic()
    try:
        curses.wrapper(tui.run)
    finally:
        tui.feed.close()
        logger.info("viewer closed after %.0fs", time.monotonic() - started)
