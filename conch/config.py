import os
from pathlib import Path

VERSION = "0.3.0"

CONCH_DIR = Path.home() / ".conch"
LOG_FILE = CONCH_DIR / "conch.log"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4280
DEFAULT_SERVER = os.environ.get("CONCH_SERVER", f"ws://{DEFAULT_HOST}:{DEFAULT_PORT}")
DEFAULT_USER = os.environ.get("CONCH_USER", os.environ.get("USER", "anonymous"))

PAGE_SIZE = 42              # blasts per recent/after/before query
POLL_INTERVAL = 2.0         # seconds between "anything newer?" polls
PREFETCH_MARGIN = 3         # fetch older blasts this many rows before the tail
INPUT_TIMEOUT_TENTHS = 2    # curses.halfdelay: max wait for a key, in 1/10 s
REQUEST_TIMEOUT = 5.0       # seconds before a fetch is given up for this tick

MAX_BLAST_LENGTH = 1024
MAX_USER_LENGTH = 32

# Server hardening
MAX_CLIENTS = 200
MAX_FRAME_BYTES = 65536
MAX_QUERY_LIMIT = 200
RATE_LIMIT_PER_SEC = 20
RATE_LIMIT_WINDOW = 1.0
