"""Decoding of base64 file attachments into text."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable

from agentchat.api.schemas import FileAttachment


class AttachmentDecodeError(ValueError):
    """Raised when an attachment is not valid base64-encoded UTF-8 text."""

    def __init__(self, index: int, reason: str):
        self.index = index
        super().__init__(f"Attachment {index} could not be decoded: {reason}")


class DecodedAttachment(FileAttachment):
    """An attachment together with its decoded text."""

    content: str


def decode_attachment(file: FileAttachment, index: int = 0) -> DecodedAttachment:
    """Decode one attachment, keeping every original field."""
    try:
        raw = base64.b64decode(file.base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AttachmentDecodeError(index, "invalid base64") from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise AttachmentDecodeError(index, "not UTF-8 text") from exc
    return DecodedAttachment.model_validate({**file.model_dump(), "content": text})


def decode_attachments(files: Iterable[FileAttachment]) -> list[DecodedAttachment]:
    return [decode_attachment(file, index) for index, file in enumerate(files)]


def join_attachment_text(decoded: Iterable[DecodedAttachment]) -> str:
    """Concatenate attachment contents, one per line."""
    return "\n".join(attachment.content for attachment in decoded)
