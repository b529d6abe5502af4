import pytest

from mastery_tutor.core.attachments import load_attachment, validate_attachment
from mastery_tutor.core.config import MAX_ATTACHMENT_BYTES
from mastery_tutor.core.errors import AttachmentError


@pytest.mark.parametrize("mime", ["image/jpeg", "image/png", "image/webp", "application/pdf"])
def test_allowed_types_pass(mime):
    validate_attachment(1024, mime)


def test_exact_limit_is_allowed():
    validate_attachment(MAX_ATTACHMENT_BYTES, "image/png")


def test_over_limit_reports_size():
    with pytest.raises(AttachmentError) as info:
        validate_attachment(MAX_ATTACHMENT_BYTES + 1, "image/png")
    assert info.value.kind == "size"
    assert "too large" in str(info.value)


@pytest.mark.parametrize("mime", ["image/gif", "text/plain", "", None])
def test_other_types_rejected(mime):
    with pytest.raises(AttachmentError) as info:
        validate_attachment(10, mime)
    assert info.value.kind == "type"


def test_load_attachment_normalizes_mime():
    attachment = load_attachment(b"%PDF-1.7", "Application/PDF")
    assert attachment.mime_type == "application/pdf"
    assert not attachment.is_image
