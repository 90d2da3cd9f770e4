import time
from dataclasses import dataclass

from conch.config import MAX_BLAST_LENGTH, MAX_USER_LENGTH


@dataclass(frozen=True)
class Blast:
    id: int
    user: str
    content: str
    posted_at: float = 0.0

    @property
    def one_line(self) -> str:
        return " ".join(self.content.split())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user": self.user,
            "content": self.content,
            "posted_at": self.posted_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Blast":
        if not isinstance(d, dict):
            raise ValueError(f"blast must be an object, got {type(d).__name__}")
        try:
            blast_id = d["id"]
            user = d["user"]
            content = d["content"]
        except KeyError as exc:
            raise ValueError(f"blast missing field {exc}") from None
        if not isinstance(blast_id, int) or isinstance(blast_id, bool):
            raise ValueError(f"blast id must be an integer, got {blast_id!r}")
        try:
            posted_at = float(d.get("posted_at", 0.0))
        except (TypeError, ValueError):
            raise ValueError(f"bad posted_at {d.get('posted_at')!r}") from None
        return cls(id=blast_id, user=str(user), content=str(content), posted_at=posted_at)


def blasts_from_dicts(items) -> list[Blast]:
    """Decode a wire batch, keeping the order the server sent it in."""
    if not items:
        return []
    if not isinstance(items, list):
        raise ValueError(f"blasts must be a list, got {type(items).__name__}")
    return [Blast.from_dict(d) for d in items]


# ---------------------------------------------------------------------------
# Blast factory
# ---------------------------------------------------------------------------

def create_blast(blast_id: int, user: str, content: str,
                 posted_at: float | None = None) -> Blast:
    user = user.strip()
    content = content.strip()
    if not user or len(user) > MAX_USER_LENGTH or " " in user:
        raise ValueError(f"bad user name {user!r} (1-{MAX_USER_LENGTH} chars, no spaces)")
    if not content:
        raise ValueError("blast is empty")
    if len(content) > MAX_BLAST_LENGTH:
        raise ValueError(f"Blast too long ({len(content)} > {MAX_BLAST_LENGTH})")
    return Blast(
        id=blast_id,
        user=user,
        content=content,
        posted_at=time.time() if posted_at is None else posted_at,
    )
