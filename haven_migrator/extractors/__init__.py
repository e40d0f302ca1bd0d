"""
Extractors for WordPress export files.

This subpackage parses WXR (WordPress eXtended RSS) exports into the
:class:`~haven_migrator.models.PostEntry` and
:class:`~haven_migrator.models.AttachmentIndex` values consumed by the
import orchestrator.
"""

from .wordpress_extractor import (
    extract_attachments_from_xml,
    extract_posts_from_xml,
    filename_from_url,
    load_export_items,
)

__all__ = [
    "extract_attachments_from_xml",
    "extract_posts_from_xml",
    "filename_from_url",
    "load_export_items",
]
