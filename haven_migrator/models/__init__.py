"""
Data model shared by the extractors, parsers and migrators.
"""

from .records import (
    AttachmentIndex,
    AttachmentRecord,
    ImageRecord,
    ImportedPost,
    ImportReport,
    MediaPayload,
    PostEntry,
    PostStatus,
    UserRef,
)

__all__ = [
    "AttachmentIndex",
    "AttachmentRecord",
    "ImageRecord",
    "ImportedPost",
    "ImportReport",
    "MediaPayload",
    "PostEntry",
    "PostStatus",
    "UserRef",
]
