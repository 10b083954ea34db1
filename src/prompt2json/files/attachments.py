"""Attachment loading with size limits for inline Gemini request parts"""  # noqa: D415

from __future__ import annotations

import base64
from collections.abc import Iterable
from dataclasses import dataclass
import logging
from pathlib import Path

from prompt2json.constants import MAX_IMAGE_SIZE, MAX_TOTAL_ENCODED_SIZE
from prompt2json.core.types import AttachmentPart
from prompt2json.exceptions import InputError

log = logging.getLogger(__name__)

_MB = 1024 * 1024


@dataclass(frozen=True, slots=True)
class AttachmentType:
    """MIME type of a supported attachment and whether image limits apply"""  # noqa: D415

    mime_type: str
    is_image: bool


SUPPORTED_TYPES: dict[str, AttachmentType] = {
    ".png": AttachmentType("image/png", is_image=True),
    ".jpg": AttachmentType("image/jpeg", is_image=True),
    ".jpeg": AttachmentType("image/jpeg", is_image=True),
    ".webp": AttachmentType("image/webp", is_image=True),
    ".pdf": AttachmentType("application/pdf", is_image=False),
}


def classify_attachment(path: str | Path) -> AttachmentType:
    """Map a file extension (case-insensitive) to its attachment type.

    Raises:
        InputError: If the extension is not supported.
    """
    ext = Path(path).suffix.lower()
    try:
        return SUPPORTED_TYPES[ext]
    except KeyError:
        supported = ", ".join(SUPPORTED_TYPES)
        raise InputError(
            f"unsupported attachment type: {ext} (supported: {supported})"
        ) from None


def load_attachments(paths: Iterable[str | Path]) -> tuple[AttachmentPart, ...]:
    """Read, size-check and base64-encode attachments in the given order.

    Per-file checks (type, readability, image size) run as each file is
    processed; the aggregate encoded size is checked once all files pass. Any
    failure discards the whole batch.

    Raises:
        InputError: Unsupported type, unreadable file, or a size limit exceeded.
    """
    parts: list[AttachmentPart] = []
    total_encoded = 0

    for path in paths:
        kind = classify_attachment(path)

        try:
            content = Path(path).read_bytes()
        except OSError as e:
            raise InputError(f"failed to read attachment {path}: {e}") from e

        size_mb = len(content) / _MB
        if kind.is_image and len(content) > MAX_IMAGE_SIZE:
            raise InputError(
                f"image file {path} exceeds {MAX_IMAGE_SIZE // _MB} MB limit: "
                f"{size_mb:.2f} MB (Gemini API limits image files to "
                f"{MAX_IMAGE_SIZE // _MB} MB before base64 encoding)"
            )

        part = AttachmentPart(
            mime_type=kind.mime_type,
            data=base64.b64encode(content).decode("ascii"),
        )
        total_encoded += part.encoded_size
        parts.append(part)

        if kind.is_image:
            log.info(
                "Attachment: %s (%s, %.2f MB) - within size limits",
                path,
                kind.mime_type,
                size_mb,
            )
        else:
            log.info("Attachment: %s (%s, %d bytes)", path, kind.mime_type, len(content))

    total_mb = total_encoded / _MB
    if total_encoded > MAX_TOTAL_ENCODED_SIZE:
        raise InputError(
            f"total attachment size exceeds limit: {total_mb:.2f} MB encoded "
            f"(limit {MAX_TOTAL_ENCODED_SIZE // _MB} MB)"
        )

    if parts:
        log.info(
            "Total attachments: %d files, %.2f MB (encoded) - within limits",
            len(parts),
            total_mb,
        )
    return tuple(parts)
