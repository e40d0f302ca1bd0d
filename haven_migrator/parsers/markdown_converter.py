"""
WordPress block HTML → Haven content.

Haven stores posts as markdown with inline HTML tags for media.  The
converter walks the top-level nodes of a post's HTML fragment and, for each
one:

* drops block comments (``<!-- wp:paragraph -->`` and friends),
* replaces image, audio and video blocks with Haven media tags, downloading
  each file once through the :class:`~haven_migrator.migrators.MediaCache`,
* keeps figure captions as italic lines,
* turns headings, lists, quotes, code and rules into markdown,
* keeps paragraph and div markup as-is.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from .media_tags import media_tag_for

if TYPE_CHECKING:
    from haven_migrator.migrators.media_cache import MediaCache

_BR = re.compile(r"<br\s*/?>", re.IGNORECASE)
_BLANK_RUNS = re.compile(r"\n{3,}")


class NodeKind(Enum):
    TEXT = "text"
    COMMENT = "comment"
    FIGURE = "figure"
    PARAGRAPH = "p"
    HEADING = "heading"
    UNORDERED_LIST = "ul"
    ORDERED_LIST = "ol"
    BLOCKQUOTE = "blockquote"
    PREFORMATTED = "pre"
    RULE = "hr"
    DIV = "div"
    OTHER = "other"


_TAG_KINDS: Dict[str, NodeKind] = {
    "figure": NodeKind.FIGURE,
    "p": NodeKind.PARAGRAPH,
    "h1": NodeKind.HEADING,
    "h2": NodeKind.HEADING,
    "h3": NodeKind.HEADING,
    "h4": NodeKind.HEADING,
    "ul": NodeKind.UNORDERED_LIST,
    "ol": NodeKind.ORDERED_LIST,
    "blockquote": NodeKind.BLOCKQUOTE,
    "pre": NodeKind.PREFORMATTED,
    "hr": NodeKind.RULE,
    "div": NodeKind.DIV,
}


def classify(node: PageElement) -> NodeKind:
    # Comments, doctypes, CDATA and processing instructions carry no content
    if isinstance(node, PreformattedString):
        return NodeKind.COMMENT
    if isinstance(node, NavigableString):
        return NodeKind.TEXT
    if isinstance(node, Tag):
        return _TAG_KINDS.get((node.name or "").lower(), NodeKind.OTHER)
    return NodeKind.OTHER


def _classes(node: Tag) -> str:
    value = node.get("class") or []
    if isinstance(value, str):
        return value
    return " ".join(value)


def _media_src(element: Optional[Tag]) -> Optional[str]:
    if not isinstance(element, Tag):
        return None
    src = element.get("src")
    if not src:
        source = element.find("source")
        src = source.get("src") if isinstance(source, Tag) else None
    return src.strip() if isinstance(src, str) and src.strip() else None


class MarkdownConverter:
    """
    Converts post HTML fragments into Haven content.

    One converter can be reused for every post of a run; the only state it
    carries is the shared media cache.  Without a cache, media blocks are
    dropped and only their captions are kept.
    """

    def __init__(self, media_cache: Optional["MediaCache"] = None) -> None:
        self.media_cache = media_cache
        self._handlers: Dict[NodeKind, Callable[[Tag, List[str]], None]] = {
            NodeKind.TEXT: self._text,
            NodeKind.COMMENT: self._skip,
            NodeKind.FIGURE: self._figure,
            NodeKind.PARAGRAPH: self._paragraph,
            NodeKind.HEADING: self._heading,
            NodeKind.UNORDERED_LIST: self._unordered_list,
            NodeKind.ORDERED_LIST: self._ordered_list,
            NodeKind.BLOCKQUOTE: self._blockquote,
            NodeKind.PREFORMATTED: self._preformatted,
            NodeKind.RULE: self._rule,
            NodeKind.DIV: self._div,
            NodeKind.OTHER: self._other,
        }

    def convert(self, html: Optional[str]) -> str:
        if not html or not html.strip():
            return ""
        soup = BeautifulSoup(html, "html.parser")
        parts: List[str] = []
        for node in list(soup.children):
            self._handlers[classify(node)](node, parts)
        return _BLANK_RUNS.sub("\n\n", "".join(parts)).strip()

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------
    def _embed(self, element: Optional[Tag], parts: List[str]) -> None:
        src = _media_src(element)
        if not src or self.media_cache is None:
            return
        resolved = self.media_cache.resolve(src)
        if resolved is not None:
            record, extension = resolved
            parts.append(media_tag_for(record, extension))

    def _caption(self, node: Tag, parts: List[str]) -> None:
        caption = node.find("figcaption")
        text = caption.get_text().strip() if isinstance(caption, Tag) else ""
        if text:
            parts.append(f"*{text}*\n\n")

    # ------------------------------------------------------------------
    # Node handlers
    # ------------------------------------------------------------------
    def _skip(self, node: PageElement, parts: List[str]) -> None:
        return None

    def _text(self, node: PageElement, parts: List[str]) -> None:
        text = str(node).strip()
        if text:
            parts.append(text + "\n")

    def _figure(self, node: Tag, parts: List[str]) -> None:
        css_class = _classes(node)
        if "wp-block-audio" in css_class:
            self._embed(node.find("audio"), parts)
        elif "wp-block-image" in css_class:
            self._embed(node.find("img"), parts)
            self._caption(node, parts)
        elif "wp-block-video" in css_class:
            self._embed(node.find("video"), parts)
            self._caption(node, parts)
        else:
            parts.append(node.get_text().strip() + "\n\n")

    def _paragraph(self, node: Tag, parts: List[str]) -> None:
        parts.append(_BR.sub("\n", node.decode_contents()).strip() + "\n\n")

    def _heading(self, node: Tag, parts: List[str]) -> None:
        level = int(node.name[1])
        parts.append(f"{'#' * level} {node.get_text().strip()}\n\n")

    def _unordered_list(self, node: Tag, parts: List[str]) -> None:
        for li in node.find_all("li"):
            parts.append(f"- {li.get_text().strip()}\n")
        parts.append("\n")

    def _ordered_list(self, node: Tag, parts: List[str]) -> None:
        for index, li in enumerate(node.find_all("li"), start=1):
            parts.append(f"{index}. {li.get_text().strip()}\n")
        parts.append("\n")

    def _blockquote(self, node: Tag, parts: List[str]) -> None:
        text = node.get_text().strip()
        if text:
            for line in text.split("\n"):
                parts.append(f"> {line.strip()}\n")
        parts.append("\n")

    def _preformatted(self, node: Tag, parts: List[str]) -> None:
        code = node.find("code")
        text = code.get_text() if isinstance(code, Tag) else node.get_text()
        parts.append(f"```\n{text}\n```\n\n")

    def _rule(self, node: Tag, parts: List[str]) -> None:
        parts.append("---\n\n")

    def _div(self, node: Tag, parts: List[str]) -> None:
        inner = node.decode_contents().strip()
        if inner:
            parts.append(inner + "\n\n")

    def _other(self, node: PageElement, parts: List[str]) -> None:
        text = node.get_text().strip()
        if text:
            parts.append(text + "\n\n")


def convert_html_to_markdown(html: Optional[str], media_cache: Optional["MediaCache"] = None) -> str:
    """Convert one post's HTML to Haven content. See :class:`MarkdownConverter`."""
    return MarkdownConverter(media_cache).convert(html)
