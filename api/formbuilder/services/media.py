"""
Media Service
Stores uploaded form and question images on local disk.
"""
import logging
import os
import time
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from formbuilder.config import get_max_upload_bytes, get_media_dir, get_media_url_prefix
from formbuilder.schemas import ImageRef

logger = logging.getLogger(__name__)


def _safe_stem(filename: Optional[str]) -> str:
    stem = Path(filename or "").stem
    cleaned = "".join(ch for ch in stem if ch.isalnum() or ch in "-_")
    return cleaned[:40] or "file"


def save_image(upload: UploadFile, folder: str) -> ImageRef:
    """
    Write an uploaded image under MEDIA_DIR/<folder>/.

    Args:
        upload: The uploaded file.
        folder: Sub-directory, e.g. "forms" or "questions".

    Returns:
        ImageRef whose `public_id` is the path relative to MEDIA_DIR.

    Raises:
        HTTPException: 400 when the file is not an image or is too large.
    """
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    content = upload.file.read()
    if len(content) > get_max_upload_bytes():
        raise HTTPException(status_code=400, detail="Image file is too large")

    suffix = Path(upload.filename or "").suffix.lower()
    stored_name = f"{int(time.time() * 1000)}-{_safe_stem(upload.filename)}-{os.urandom(4).hex()}{suffix}"
    target_dir = get_media_dir() / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / stored_name).write_bytes(content)

    public_id = f"{folder}/{stored_name}"
    logger.info("Stored image %s (%d bytes)", public_id, len(content))
    return ImageRef(
        url=f"{get_media_url_prefix()}/{public_id}",
        filename=upload.filename or stored_name,
        mimetype=content_type,
        public_id=public_id,
    )


def delete_image(public_id: Optional[str]) -> bool:
    """Remove a stored image. Returns False when there was nothing to delete."""
    if not public_id:
        return False

    media_dir = get_media_dir().resolve()
    path = (media_dir / public_id).resolve()
    if media_dir not in path.parents:
        logger.warning("Refusing to delete %s outside the media directory", public_id)
        return False
    if not path.exists():
        return False

    path.unlink()
    return True
