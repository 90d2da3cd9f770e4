import argparse
import asyncio
import logging
import queue
import sys

from conch.config import (
    CONCH_DIR,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SERVER,
    DEFAULT_USER,
    LOG_FILE,
    PAGE_SIZE,
    VERSION,
)
from conch.feed import Feed
from conch.fetcher import Fetcher
from conch.listview import ListView
from conch.mouthpiece import BackendError, Mouthpiece
from conch.tui import ConchTUI, run_tui

logger = logging.getLogger("conch")

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# ------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------

def _configure_logging(to_file: bool, verbose: bool = False):
    """curses owns the terminal while the viewer runs, so it logs to a file."""
    level = logging.DEBUG if verbose else logging.INFO
    if to_file:
        CONCH_DIR.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
    logging.getLogger("websockets").setLevel(logging.WARNING)


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------

def _open_viewer(args):
    _configure_logging(to_file=True, verbose=args.verbose)
    logger.info("conch %s viewing %s", VERSION, args.server)

    ui_queue: queue.Queue = queue.Queue()
    fetcher = Fetcher(Mouthpiece(args.server, page_size=args.page_size), ui_queue)
    fetcher.start()

    view = ListView(stick_to_top=args.stick_to_top)
    feed = Feed(view, fetcher)
    tui = ConchTUI(feed, ui_queue, post_cb=lambda text: fetcher.post(args.user, text))
    try:
        run_tui(tui)
    finally:
        fetcher.stop()


def _cmd_serve(args):
    _configure_logging(to_file=False, verbose=args.verbose)
    from conch.server import main as server_main
    try:
        server_main(host=args.host, port=args.port, seed=args.seed)
    except KeyboardInterrupt:
        print("\n  server stopped.")


def _cmd_post(args):
    _configure_logging(to_file=False, verbose=args.verbose)
    content = " ".join(args.content).strip()
    if not content:
        print("  nothing to blast.")
        return 1

    async def _post():
        mouthpiece = Mouthpiece(args.server)
        try:
            return await mouthpiece.post(args.user, content)
        finally:
            await mouthpiece.close()

    try:
        blast = asyncio.run(_post())
    except BackendError as exc:
        print(f"  ERROR: {exc}")
        return 1
    print(f"  blasted #{blast.id} as @{blast.user}")
    return 0


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def _add_shared(parser: argparse.ArgumentParser, defaults: bool):
    # Subcommands suppress their defaults so they never clobber a value given
    # before the subcommand name.
    def default(value):
        return value if defaults else argparse.SUPPRESS

    parser.add_argument("--verbose", action="store_true", default=default(False),
                        help="debug logging")
    parser.add_argument("--server", default=default(DEFAULT_SERVER),
                        help=f"backend URL (default: {DEFAULT_SERVER})")
    parser.add_argument("--user", default=default(DEFAULT_USER), help="name to blast as")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conch",
        description="conch: a live, scrollable feed of blasts",
    )
    parser.add_argument("-v", "--version", action="version", version=f"conch {VERSION}")
    _add_shared(parser, defaults=True)

    shared = argparse.ArgumentParser(add_help=False)
    _add_shared(shared, defaults=False)

    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", parents=[shared], help="run a blast server")
    serve.add_argument("--host", default=DEFAULT_HOST)
    serve.add_argument("-p", "--port", type=int, default=DEFAULT_PORT)
    serve.add_argument("--seed", type=int, default=0,
                       help="start with this many sample blasts")

    post = sub.add_parser("post", parents=[shared], help="post one blast and exit")
    post.add_argument("content", nargs="+")

    parser.add_argument("-s", "--stick-to-top", action="store_true",
                        help="follow new blasts while the top one is selected")
    parser.add_argument("--page-size", type=int, default=PAGE_SIZE,
                        help="blasts per fetch (default: %(default)s)")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.command == "serve":
        _cmd_serve(args)
        return 0

    if args.command == "post":
        return _cmd_post(args)

    if args.page_size <= 0:
        print("  --page-size must be positive.")
        return 2

    _open_viewer(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
