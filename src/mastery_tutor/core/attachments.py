from __future__ import annotations

from mastery_tutor.core.config import ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_BYTES
from mastery_tutor.core.errors import AttachmentError
from mastery_tutor.core.models import Attachment


def validate_attachment(
    size_bytes: int,
    mime_type: str,
    max_bytes: int = MAX_ATTACHMENT_BYTES,
) -> None:
    """Raise AttachmentError if a file may not be sent to the model."""
    if size_bytes > max_bytes:
        size_mb = size_bytes / (1024 * 1024)
        limit_mb = max_bytes / (1024 * 1024)
        raise AttachmentError(
            f"The selected file is too large ({size_mb:.1f}MB). Please upload a file "
            f"smaller than {limit_mb:.1f}MB to ensure optimal processing speed and accuracy.",
            kind="size",
        )

    if (mime_type or "").lower() not in ALLOWED_ATTACHMENT_TYPES:
        raise AttachmentError(
            "Unsupported file format. Please upload an image (JPEG, PNG, WebP) "
            "or a PDF document for analysis.",
            kind="type",
        )


def load_attachment(data: bytes, mime_type: str) -> Attachment:
    validate_attachment(len(data), mime_type)
    return Attachment(data=data, mime_type=mime_type.lower())
