"""Local storage for uploaded game cover images."""

import re
import secrets
import time
from pathlib import Path
from uuid import UUID

import structlog
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from gametracker.config import settings
from gametracker.core.exceptions import BadRequestException

logger = structlog.get_logger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
EXTENSIONS_BY_TYPE = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
# Pillow format names the declared content type must decode as
FORMATS_BY_TYPE = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
}
UPLOAD_URL_PREFIX = "/uploads/games/"
# Stored names carry the uploader: game-<account hex>-<millis>-<random><ext>
_UPLOAD_URL = re.compile(r"^/uploads/games/(game-([0-9a-f]{32})-\d+-\d+\.(?:jpg|png|webp))$")

CHUNK_SIZE = 64 * 1024


def games_upload_dir() -> Path:
    """Directory holding game images, created on first use."""
    path = Path(settings.upload_dir) / "games"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_image_url(filename: str) -> str:
    """Public URL under which an uploaded file is served."""
    return f"{UPLOAD_URL_PREFIX}{filename}"


def parse_upload_url(image_url: str) -> tuple[str, UUID] | None:
    """
    Split a local upload URL into its stored filename and uploader.

    Only exact relative ``/uploads/games/`` URLs of files this service named
    are recognised; anything else, absolute URLs included, yields None.
    """
    match = _UPLOAD_URL.match(image_url)
    if not match:
        return None
    return match.group(1), UUID(hex=match.group(2))


def _build_filename(account_id: UUID, content_type: str) -> str:
    # The extension always follows the verified type, never the client's filename
    extension = EXTENSIONS_BY_TYPE[content_type]
    return f"game-{account_id.hex}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}"


def _check_image(path: Path, content_type: str) -> None:
    """
    Make sure the stored bytes decode as the declared image format.

    Raises:
        BadRequestException: If Pillow cannot identify the file or it is another format
    """
    try:
        with Image.open(path) as image:
            image_format = image.format
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.info("game_image_rejected", reason=str(e))
        image_format = None

    if image_format != FORMATS_BY_TYPE[content_type]:
        path.unlink(missing_ok=True)
        raise BadRequestException("Only JPEG, PNG, and WebP images are allowed", "INVALID_FILE_TYPE")


async def save_game_image(upload: UploadFile, account_id: UUID, max_bytes: int | None = None) -> tuple[str, int]:
    """
    Validate and persist an uploaded image.

    Args:
        upload: Multipart file from the request
        account_id: Uploading account, recorded in the stored filename
        max_bytes: Size limit, defaults to the configured upload limit

    Returns:
        Tuple of stored filename and size in bytes

    Raises:
        BadRequestException: If the file is not a JPEG, PNG or WebP image or is too large
    """
    max_bytes = max_bytes or settings.upload_max_bytes
    content_type = (upload.content_type or "").lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise BadRequestException("Only JPEG, PNG, and WebP images are allowed", "INVALID_FILE_TYPE")

    filename = _build_filename(account_id, content_type)
    destination = games_upload_dir() / filename

    size = 0
    with destination.open("wb") as out:
        while chunk := await upload.read(CHUNK_SIZE):
            size += len(chunk)
            if size > max_bytes:
                break
            out.write(chunk)

    if size > max_bytes:
        destination.unlink(missing_ok=True)
        limit_mb = max_bytes / (1024 * 1024)
        raise BadRequestException(f"Image size must be less than {limit_mb:g}MB", "FILE_TOO_LARGE")

    _check_image(destination, content_type)

    logger.info("game_image_saved", filename=filename, size=size, account_id=str(account_id))
    return filename, size


def delete_image_by_url(image_url: str | None, account_id: UUID) -> bool:
    """
    Remove a locally stored image uploaded by ``account_id``.

    External URLs and files uploaded by other accounts are left alone.
    """
    if not image_url:
        return False

    parsed = parse_upload_url(image_url)
    if parsed is None:
        return False

    filename, owner_id = parsed
    if owner_id != account_id:
        logger.warning("game_image_delete_refused", filename=filename, account_id=str(account_id))
        return False

    path = Path(settings.upload_dir) / "games" / filename
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("game_image_delete_failed", filename=filename, error=str(e))
        return False

    logger.info("game_image_deleted", filename=filename)
    return True
