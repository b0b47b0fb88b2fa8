"""JSON-file post store for deployments without the hosted database."""
import json
import logging
import random
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from loreboard.modules.board.schemas import BoardPost, BoardPostCreate

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_at(post: Dict[str, Any]) -> datetime:
    raw = post.get("createdAt") if isinstance(post, dict) else None
    if not isinstance(raw, str):
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def next_id() -> str:
    return f"user-{int(time.time() * 1000)}-{random.randint(0, 99999)}"


class BoardStore:
    def __init__(self, path: Path, max_posts: int = 500):
        self.path = Path(path)
        self.max_posts = max_posts
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        try:
            parsed = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.error(f"Unable to read posts file {self.path}: {e}")
            return []
        return parsed if isinstance(parsed, list) else []

    def _write(self, posts: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(posts, indent=2) + "\n", encoding="utf-8")

    def list_posts(self) -> List[Dict[str, Any]]:
        """All stored posts, newest first"""
        with self._lock:
            posts = self._read()
        return sorted(posts, key=_created_at, reverse=True)

    def add_post(self, data: BoardPostCreate) -> BoardPost:
        """Store a sanitized post at the head of the list, dropping the oldest beyond max_posts"""
        post = BoardPost(
            **data.model_dump(),
            id=next_id(),
            created_at=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        )
        with self._lock:
            posts = self._read()
            self._write([post.to_json(), *posts][:self.max_posts])
        logger.info(f"Stored board post {post.id}")
        return post
