"""Resume file storage for uploaded candidate documents."""

import re
import uuid
from pathlib import Path
from typing import Optional

from .errors import PayloadTooLargeError, ValidationError
from .logger import get_logger

logger = get_logger()

UPLOAD_URL_PREFIX = "/uploads"
ALLOWED_EXTENSIONS = {".pdf", ".doc", ".docx"}


def safe_filename(original: str) -> str:
    """Sanitize a client filename and prefix it with a short unique token."""
    base = re.sub(r"[^A-Za-z0-9._-]", "_", Path(original or "resume").name)
    unique = uuid.uuid4().hex[:12]
    return f"{unique}_{base}"


def store_resume(
    filename: str,
    content: bytes,
    upload_dir: Path,
    max_bytes: int,
) -> Optional[str]:
    """
    Write an uploaded resume to upload_dir.

    Args:
        filename: Name supplied by the client
        content: File bytes
        upload_dir: Directory served under /uploads
        max_bytes: Size limit

    Returns:
        Public path ("/uploads/<name>") to record as resumeUrl, or None for an empty upload

    Raises:
        PayloadTooLargeError: If content exceeds max_bytes
        ValidationError: If the extension is not an accepted document type
    """
    if not content:
        return None
    if len(content) > max_bytes:
        raise PayloadTooLargeError(f"Resume file too large (limit {max_bytes} bytes)")

    suffix = Path(filename or "").suffix.lower()
    if suffix not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            "Unsupported resume file type",
            [f"Allowed extensions: {', '.join(sorted(ALLOWED_EXTENSIONS))}"],
        )

    upload_dir.mkdir(parents=True, exist_ok=True)
    stored_name = safe_filename(filename)
    (upload_dir / stored_name).write_bytes(content)
    logger.info("Resume stored", file=stored_name, size=len(content))
    return f"{UPLOAD_URL_PREFIX}/{stored_name}"


def discard_resume(resume_url: str, upload_dir: Path) -> None:
    """Delete a file previously written by store_resume."""
    path = upload_dir / resume_url.rsplit("/", 1)[-1]
    path.unlink(missing_ok=True)
    logger.info("Resume discarded", file=path.name)
