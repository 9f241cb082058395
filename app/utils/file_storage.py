import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional
from fastapi import UploadFile
from loguru import logger

from app.core.config import settings
from app.core.exceptions import WorkflowValidationError, InvalidAttachmentError


STATIC_URL_PREFIX = "/static"

# Buckets under static_dir
ARTWORK_BUCKET = "artwork"
LOGO_BUCKET = "logos"
RENDER_BUCKET = "renders"
DRAWING_BUCKET = "drawings"
ATTACHMENT_BUCKET = "attachments"

# Allowed file extensions for stand deliverables
ALLOWED_STAND_FILE_EXTENSIONS = {
    # Print / vector formats
    "pdf", "ai", "eps", "svg",
    # CAD exports
    "dwg", "dxf",
    # Image formats
    "png", "jpg", "jpeg",
    "gif", "bmp", "tiff", "tif",
    "webp",
    # Office documents (specs, AV lists)
    "doc", "docx", "xls", "xlsx",
}

MB = 1024 * 1024


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def get_file_size(upload_file: UploadFile) -> int:
    """Size in bytes; leaves the stream rewound for saving."""
    upload_file.file.seek(0, 2)
    size = upload_file.file.tell()
    upload_file.file.seek(0)
    return size


def validate_stand_file(
    upload_file: UploadFile,
    accepted_formats: Optional[Iterable[str]] = None,
    max_size_mb: Optional[int] = None
) -> None:
    """
    Validates a stand deliverable before it is stored.
    `accepted_formats` narrows the global allow-list (e.g. a template requirement's formats).
    Raises WorkflowValidationError on any violation.
    """
    filename = upload_file.filename or ""
    if not filename:
        raise WorkflowValidationError("Filename is required for uploads.")

    ext = _extension(filename)
    if not ext:
        raise WorkflowValidationError(
            "File must have an extension. Allowed extensions: " +
            ", ".join(sorted(ALLOWED_STAND_FILE_EXTENSIONS))
        )

    if ext not in ALLOWED_STAND_FILE_EXTENSIONS:
        raise WorkflowValidationError(
            f"File extension '.{ext}' is not allowed. Allowed extensions: {', '.join(sorted(ALLOWED_STAND_FILE_EXTENSIONS))}"
        )

    formats = {f.strip().lower().lstrip(".") for f in (accepted_formats or []) if f.strip()}
    # JPEG is commonly listed as JPG
    if "jpg" in formats or "jpeg" in formats:
        formats |= {"jpg", "jpeg"}
    if formats and ext not in formats:
        raise WorkflowValidationError(
            f"This artwork must be one of: {', '.join(sorted(f.upper() for f in formats))}."
        )

    limit_mb = min(max_size_mb or settings.max_upload_size_mb,
                   settings.max_upload_size_mb)
    if get_file_size(upload_file) > limit_mb * MB:
        raise WorkflowValidationError(
            f"File is larger than the {limit_mb} MB limit.")


def validate_image_attachment(upload_file: UploadFile) -> None:
    """Discussion attachments: images only, bounded size."""
    content_type = upload_file.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidAttachmentError("Only image attachments are allowed.")

    if get_file_size(upload_file) > settings.max_attachment_size_mb * MB:
        raise InvalidAttachmentError(
            f"Attachments must be smaller than {settings.max_attachment_size_mb} MB.")


def save_upload_file(upload_file: UploadFile, bucket: str) -> str:
    """
    Saves a binary UploadFile stream to static_dir/<bucket>
    and returns the public URL.
    """
    target_dir = Path(settings.static_dir) / bucket
    os.makedirs(target_dir, exist_ok=True)

    # Preserve extension if possible, else default to .bin
    ext = _extension(upload_file.filename or "") or "bin"
    unique_name = f"{uuid.uuid4()}.{ext}"
    file_path = target_dir / unique_name

    try:
        with open(file_path, "wb") as buffer:
            shutil.copyfileobj(upload_file.file, buffer)

        # e.g. http://localhost:8000/static/artwork/uuid.pdf
        return f"{settings.public_url}{STATIC_URL_PREFIX}/{bucket}/{unique_name}"

    except Exception as e:
        logger.error(f"Error saving upload to {bucket}: {e}")
        raise e


def delete_stored_file(file_url: Optional[str]) -> None:
    """Removes a blob written by save_upload_file. Missing files are ignored."""
    prefix = f"{settings.public_url}{STATIC_URL_PREFIX}/"
    if not file_url or not file_url.startswith(prefix):
        return
    file_path = Path(settings.static_dir) / file_url[len(prefix):]
    try:
        file_path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove orphaned upload {file_path}: {e}")
