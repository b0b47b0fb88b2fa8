import json
import logging
from functools import lru_cache
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse

from loreboard.config.settings import settings
from loreboard.modules.board.schemas import BoardPostCreate
from loreboard.modules.board.store import BoardStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["board"])

NO_STORE = {"Cache-Control": "no-store"}

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".woff2": "font/woff2",
}


class ForbiddenPath(Exception):
    pass


@lru_cache
def get_board_store() -> BoardStore:
    return BoardStore(Path(settings.board_data_path), max_posts=settings.board_max_posts)


def get_public_dir() -> Path:
    return Path(settings.public_dir)


def resolve_static_path(root: Path, request_path: str) -> Path:
    """Map a URL path onto a file under root. Raises ForbiddenPath for anything that escapes it."""
    root = root.resolve()
    relative = request_path.lstrip("/") or "index.html"
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise ForbiddenPath(request_path)
    return candidate


def _text(status_code: int, message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers=NO_STORE)


@router.get("/api/posts")
async def list_board_posts(store: BoardStore = Depends(get_board_store)):
    """Stored posts, newest first"""
    return JSONResponse(store.list_posts(), headers=NO_STORE)


@router.post("/api/posts")
async def create_board_post(request: Request, store: BoardStore = Depends(get_board_store)):
    """Validate {author, school, text} and store it"""
    raw = await request.body()
    if len(raw) > settings.board_max_payload_bytes:
        return _text(400, "Payload too large.")
    try:
        payload = json.loads(raw) if raw else {}
    except ValueError:
        return _text(400, "Invalid JSON payload.")
    try:
        data = BoardPostCreate.sanitize(payload)
    except ValueError as e:
        return _text(400, str(e))
    try:
        post = store.add_post(data)
    except OSError as e:
        logger.error(f"Unable to write posts file: {e}")
        return _text(400, "Unable to save post.")
    return JSONResponse(post.to_json(), status_code=201, headers=NO_STORE)


@router.api_route("/api/posts", methods=["PUT", "PATCH", "DELETE"])
async def board_method_not_allowed():
    return _text(405, "Method not allowed.")


@router.get("/{file_path:path}")
async def serve_static(file_path: str, public_dir: Path = Depends(get_public_dir)):
    """Everything that is not the API comes from the public directory"""
    try:
        target = resolve_static_path(public_dir, file_path)
    except ForbiddenPath:
        logger.warning(f"Rejected static path outside root: {file_path}")
        return _text(403, "Forbidden")
    if not target.is_file():
        return _text(404, "Not found")
    content_type = CONTENT_TYPES.get(target.suffix.lower(), "application/octet-stream")
    return FileResponse(target, media_type=content_type)
