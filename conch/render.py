import curses
import textwrap
import time
from dataclasses import dataclass, field
from typing import Optional

from conch.listview import ListView

C_TITLE = 1
C_USER = 2
C_DIM = 3
C_SELECTED = 4
C_STATUS = 5

TITLE = " conch 螺 "
HELP = " j/k: down/up  s: stick to top  0: to top  enter: read  p: post  q: quit "
TOO_SMALL = "Window too small! Embiggen!"

MIN_WIDTH_FOR_CLOCK = 64    # room for a short status next to the clock
SPINNER = [" conch | ", " conch / ", " conch - ", " conch \\ "]


@dataclass
class Chrome:
    blast_height: int = 2
    blast_left_margin: int = 1
    blast_gap: int = 1
    border_width: int = 1
    padding_x: int = 1
    padding_y: int = 1
    title_left_margin: int = 2


@dataclass
class Rect:
    top: int
    left: int
    height: int
    width: int


@dataclass
class RenderContext:
    """Everything the renderer keeps between frames."""
    chrome: Chrome = field(default_factory=Chrome)
    status: str = ""
    status_expire: float = 0.0
    show_spinner: bool = False
    spinner_state: int = 0
    input_prompt: Optional[str] = None
    input_buf: str = ""

    def flash(self, msg: str, seconds: float = 4.0, now: Optional[float] = None):
        self.status = msg
        self.status_expire = (time.time() if now is None else now) + seconds

    def current_status(self, now: Optional[float] = None) -> str:
        now = time.time() if now is None else now
        if self.status and now < self.status_expire:
            return self.status
        return ""


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def content_rect(rows: int, cols: int, chrome: Chrome) -> Optional[Rect]:
    edge = chrome.border_width + chrome.padding_y
    if rows < 2 * edge + 1 or cols < 2 * chrome.padding_x + 1:
        return None
    return Rect(
        top=edge,
        left=chrome.padding_x,
        height=rows - 2 * edge,
        width=cols - 2 * chrome.padding_x,
    )


def viewport_height(rows: int, chrome: Chrome) -> int:
    """How many blasts fit on a screen ``rows`` tall."""
    edge = chrome.border_width + chrome.padding_y
    return _blast_slots(rows - 2 * edge, chrome)


def _blast_slots(avail: int, chrome: Chrome) -> int:
    if avail < chrome.blast_height:
        return 0
    return (avail + chrome.blast_gap) // (chrome.blast_height + chrome.blast_gap)


def truncate(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    return text[: width - 1] + "~"


def format_age(posted_at: float, now: Optional[float] = None) -> str:
    if not posted_at:
        return ""
    now = time.time() if now is None else now
    diff = max(0, int(now - posted_at))
    if diff < 60:
        return f"{diff}s ago"
    elif diff < 3600:
        return f"{diff // 60}m ago"
    elif diff < 86400:
        return f"{diff // 3600}h ago"
    return f"{diff // 86400}d ago"


def clock_text(now: Optional[float] = None) -> str:
    return time.strftime(" %Y-%m-%d %H:%M:%S ", time.localtime(now))


def spinner_frame(ctx: RenderContext) -> str:
    # Keep spinning until a full turn is done, even once the work has stopped.
    if ctx.show_spinner or ctx.spinner_state != 0:
        ctx.spinner_state = (ctx.spinner_state + 1) % len(SPINNER)
    return SPINNER[ctx.spinner_state]


# ---------------------------------------------------------------------------
# Drawing
# ---------------------------------------------------------------------------

def _put(scr, y: int, x: int, text: str, attr: int = 0):
    try:
        scr.addstr(y, x, text, attr)
    except curses.error:
        pass


def _hline(scr, y: int, W: int):
    try:
        scr.hline(y, 0, curses.ACS_HLINE, W)
    except curses.error:
        pass


def render(scr, ctx: RenderContext, view: ListView, mode: str = "list", info: str = ""):
    scr.erase()
    H, W = scr.getmaxyx()
    rect = content_rect(H, W, ctx.chrome)
    if rect is None:
        _put(scr, 0, 0, TOO_SMALL[: max(0, W - 1)])
        scr.refresh()
        return

    if mode == "detail" and view.selected is not None:
        _draw_detail(scr, view, rect)
    else:
        _draw_list(scr, ctx, view, rect)

    _draw_chrome(scr, ctx, H, W)
    if W >= MIN_WIDTH_FOR_CLOCK:
        clock = clock_text()
        _put(scr, 0, W - len(clock) - ctx.chrome.padding_x, clock)
    _draw_status(scr, ctx, W)
    _draw_footer(scr, ctx, H, W, info)
    scr.refresh()


def _draw_chrome(scr, ctx: RenderContext, H: int, W: int):
    _hline(scr, 0, W)
    _hline(scr, H - 1, W)
    _put(scr, 0, ctx.chrome.title_left_margin, TITLE, curses.color_pair(C_TITLE) | curses.A_BOLD)


def _draw_status(scr, ctx: RenderContext, W: int):
    status = ctx.current_status()
    if not status:
        return
    text = f" {truncate(status, W - 4)} "
    _put(scr, 0, max(0, (W - len(text)) // 2), text, curses.color_pair(C_STATUS) | curses.A_BOLD)


def _draw_footer(scr, ctx: RenderContext, H: int, W: int, info: str):
    last = H - 1
    spin = spinner_frame(ctx)
    spin_x = W - len(spin) - ctx.chrome.padding_x

    if ctx.input_prompt is not None:
        prompt = f" {ctx.input_prompt} "
        room = spin_x - len(prompt) - ctx.chrome.padding_x - 1
        buf = ctx.input_buf[-room:] if room > 0 else ""
        _put(scr, last, ctx.chrome.padding_x, prompt, curses.color_pair(C_USER) | curses.A_BOLD)
        _put(scr, last, ctx.chrome.padding_x + len(prompt), buf)
    else:
        help_text = HELP
        if info:
            help_text = f"{HELP.rstrip()}  | {info} "
        _put(scr, last, ctx.chrome.padding_x,
             truncate(help_text, spin_x - ctx.chrome.padding_x - 1), curses.color_pair(C_DIM))
    if spin_x > 0:
        _put(scr, last, spin_x, spin, curses.color_pair(C_DIM))


def _draw_list(scr, ctx: RenderContext, view: ListView, rect: Rect):
    chrome = ctx.chrome
    if view.head is None:
        _put(scr, rect.top, rect.left + chrome.blast_left_margin,
             "no blasts yet, waiting for the feed...", curses.color_pair(C_DIM))
        return

    height = _blast_slots(rect.height, chrome)
    width = rect.width - chrome.blast_left_margin - 2
    row = rect.top
    rows = view.visible_slice(height)
    for node in rows:
        blast = node.blast
        selected = node is view.current
        marker = ">" if selected else " "
        user_attr = curses.color_pair(C_USER) | curses.A_BOLD
        text_attr = curses.color_pair(C_DIM)
        if selected:
            user_attr = curses.color_pair(C_SELECTED) | curses.A_BOLD
            text_attr = curses.color_pair(C_SELECTED)

        x = rect.left + chrome.blast_left_margin
        meta = f"#{blast.id}  {format_age(blast.posted_at)}".rstrip()
        _put(scr, row, rect.left, marker, user_attr)
        _put(scr, row, x + 1, truncate(f"@{blast.user}", width - len(meta) - 2), user_attr)
        _put(scr, row, rect.left + rect.width - len(meta), meta, curses.color_pair(C_DIM))
        _put(scr, row + 1, rect.left, marker, user_attr)
        _put(scr, row + 1, x + 1, truncate(blast.one_line, width), text_attr)
        row += chrome.blast_height + chrome.blast_gap

    if rows and rows[-1].next is None and row < rect.top + rect.height:
        _put(scr, row, rect.left + chrome.blast_left_margin + 1,
             "-- end of loaded blasts --", curses.color_pair(C_DIM) | curses.A_DIM)


def _draw_detail(scr, view: ListView, rect: Rect):
    blast = view.selected
    header = f"@{blast.user}  #{blast.id}  {format_age(blast.posted_at)}".rstrip()
    _put(scr, rect.top, rect.left + 1, truncate(header, rect.width - 2),
         curses.color_pair(C_USER) | curses.A_BOLD)
    lines = []
    for para in blast.content.splitlines() or [""]:
        lines.extend(textwrap.wrap(para, max(1, rect.width - 2)) or [""])
    for i, line in enumerate(lines[: max(0, rect.height - 3)]):
        _put(scr, rect.top + 2 + i, rect.left + 1, line)
    _put(scr, rect.top + rect.height - 1, rect.left + 1,
         "[esc] back to the feed", curses.color_pair(C_DIM) | curses.A_DIM)


def setup_colors():
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_USER, curses.COLOR_GREEN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)
    curses.init_pair(C_SELECTED, curses.COLOR_YELLOW, -1)
    curses.init_pair(C_STATUS, curses.COLOR_MAGENTA, -1)
