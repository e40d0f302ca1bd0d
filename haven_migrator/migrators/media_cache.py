"""
Download-once media cache for the import run.

Every media URL met while converting post content goes through
:class:`MediaCache`.  A URL is attempted at most once per run: a successful
download is kept in a temporary file until the cache is closed, and a
failed one is remembered as ``None`` so that later references return
immediately without touching the network.  The cache also remembers the
image record created for each URL, so a file referenced by several posts
is stored in Haven only once.

Temporary files are owned by the cache and released when it is closed;
use it as a context manager around the whole run::

    with MediaCache(client) as media:
        body = convert_html_to_markdown(html, media)
"""

from __future__ import annotations

import os
import re
import tempfile
from contextlib import ExitStack
from typing import Any, BinaryIO, Dict, Optional, Protocol, Tuple
from urllib.parse import urlparse

import requests

from haven_migrator.extractors.wordpress_extractor import filename_from_url
from haven_migrator.models import AttachmentIndex, ImageRecord, MediaPayload
from haven_migrator.utils.errors import log_message, report_error, report_ok

FETCHABLE_SCHEMES = ("http", "https")

CONTENT_TYPES: Dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".m4a": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
}

# WordPress names resized copies "<name>-<width>x<height>.<ext>"
_RESIZED_SUFFIX = re.compile(r"-\d+x\d+(?=\.[A-Za-z0-9]+$)")


class ImageStore(Protocol):
    def create_image(self, file: BinaryIO, filename: str, content_type: str) -> ImageRecord: ...


def content_type_for(extension: str) -> str:
    return CONTENT_TYPES.get((extension or "").lower(), "application/octet-stream")


class MediaCache:
    """
    URL-keyed store of downloaded media and the image records made from it.

    :param store: Creates image records (usually a ``HavenClient``).
    :param session: ``requests`` session used for downloads.
    :param timeout: Per-download timeout in seconds.
    :param attachments: Attachments from the export, used to swap a resized
        image URL for its original when the original is known.
    """

    def __init__(
        self,
        store: ImageStore,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        attachments: Optional[AttachmentIndex] = None,
        resolve_original_media: bool = True,
        chunk_size: int = 1 << 15,
    ) -> None:
        self.store = store
        # a session created here is closed with the cache
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.attachments = attachments or AttachmentIndex()
        self.resolve_original_media = resolve_original_media
        self.chunk_size = chunk_size
        # url -> payload, or None once the download failed
        self._entries: Dict[str, Optional[MediaPayload]] = {}
        self._records: Dict[str, ImageRecord] = {}
        self._stack = ExitStack()

    def __enter__(self) -> "MediaCache":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def close(self) -> None:
        """Release every temporary file held by the cache, and its own session."""
        self._stack.close()
        if self._owns_session:
            self.session.close()

    @property
    def downloaded_count(self) -> int:
        return sum(1 for payload in self._entries.values() if payload is not None)

    def original_url(self, url: str) -> str:
        """Map a resized WordPress image URL to its original attachment URL, if known."""
        if not self.resolve_original_media or url in self.attachments:
            return url
        parsed = urlparse(url)
        stripped = _RESIZED_SUFFIX.sub("", parsed.path)
        if stripped == parsed.path:
            return url
        candidate = parsed._replace(path=stripped, query="", fragment="").geturl()
        return candidate if candidate in self.attachments else url

    def fetch(self, url: str) -> Optional[MediaPayload]:
        """
        Return the downloaded payload for ``url``, downloading it on first use.

        :return: The payload, or ``None`` if the URL cannot be or could not
            be downloaded.  Either outcome is final for the run.
        """
        if url in self._entries:
            return self._entries[url]

        if urlparse(url).scheme.lower() not in FETCHABLE_SCHEMES:
            log_message(f"Skipping non-HTTP URL: {url}", level="WARNING")
            report_error("MEDIA_SKIPPED", {"url": url})
            self._entries[url] = None
            return None

        self._entries[url] = self._download(url)
        return self._entries[url]

    def _download(self, url: str) -> Optional[MediaPayload]:
        filename = filename_from_url(url) or "media"
        extension = os.path.splitext(filename)[1].lower()
        log_message(f"Downloading: {filename}")

        tmp = tempfile.TemporaryFile(prefix="wp_import", suffix=extension)
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                for chunk in resp.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        tmp.write(chunk)
        except (requests.RequestException, OSError) as e:
            tmp.close()
            log_message(f"Failed to download {url}: {e}", level="WARNING")
            report_error("MEDIA_DOWNLOAD", {"url": url}, e)
            return None

        tmp.seek(0)
        self._stack.enter_context(tmp)
        report_ok("MEDIA_DOWNLOADED", {"url": url}, {"filename": filename})
        return MediaPayload(file=tmp, filename=filename, extension=extension)

    def create_image_record(self, payload: Optional[MediaPayload]) -> Optional[ImageRecord]:
        """
        Store a downloaded payload as a Haven image record.

        Not memoised: callers wanting one record per URL go through
        :meth:`resolve`.
        """
        if payload is None:
            return None
        payload.file.seek(0)
        record = self.store.create_image(payload.file, payload.filename, content_type_for(payload.extension))
        payload.file.seek(0)
        report_ok("IMAGE_CREATED", {"filename": payload.filename}, {"image_id": record.id})
        return record

    def resolve(self, url: str) -> Optional[Tuple[ImageRecord, str]]:
        """
        Return the image record and source extension for ``url``.

        The first call for a URL downloads it and creates the record; later
        calls return the same record.  ``None`` if the media is unavailable.
        """
        url = self.original_url(url)
        payload = self.fetch(url)
        if payload is None:
            return None
        record = self._records.get(url)
        if record is None:
            record = self.create_image_record(payload)
            if record is None:
                return None
            self._records[url] = record
        return record, payload.extension
