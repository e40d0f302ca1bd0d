"""
Parsers and converters used by the import pipeline.

This subpackage exposes ``convert_html_to_markdown`` from
:mod:`haven_migrator.parsers.markdown_converter` and the media tag builder
from :mod:`haven_migrator.parsers.media_tags`.
"""

from .markdown_converter import MarkdownConverter, NodeKind, classify, convert_html_to_markdown
from .media_tags import media_tag_for, raw_media_path

__all__ = [
    "MarkdownConverter",
    "NodeKind",
    "classify",
    "convert_html_to_markdown",
    "media_tag_for",
    "raw_media_path",
]
