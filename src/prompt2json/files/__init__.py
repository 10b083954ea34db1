"""Attachment discovery and encoding for inline request parts."""

from .attachments import (
    SUPPORTED_TYPES,
    AttachmentType,
    classify_attachment,
    load_attachments,
)

__all__ = [
    "SUPPORTED_TYPES",
    "AttachmentType",
    "classify_attachment",
    "load_attachments",
]
