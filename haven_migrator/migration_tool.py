"""
High-level orchestration of the WordPress → Haven import.

This module defines a :class:`HavenImportTool` class that ties together the
extractor, the author resolver, the media cache and the content converter
into a complete run: posts are read from a WXR export, sorted by date,
converted to Haven content and created one by one.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``haven`` section holds ``base_url`` and ``api_token``;
the ``migration`` section holds the ``author_map``, ``dry_run`` and the
optional ``limit``, ``report_dir``, ``download_timeout`` and
``resolve_original_media`` settings.  Missing values are read from the
environment (``HAVEN_BASE_URL``, ``HAVEN_API_TOKEN``, ``AUTHOR_MAP``,
``DRY_RUN=1``).
"""

from __future__ import annotations

import json
import os
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from haven_migrator.extractors.wordpress_extractor import (
    extract_attachments_from_xml,
    extract_posts_from_xml,
    load_export_items,
)
from haven_migrator.migrators.haven_migrator import HavenClient
from haven_migrator.migrators.media_cache import MediaCache
from haven_migrator.models import AttachmentIndex, ImportedPost, ImportReport, PostEntry
from haven_migrator.parsers.markdown_converter import MarkdownConverter
from haven_migrator.utils.authors import AuthorMapping, resolve_authors
from haven_migrator.utils.errors import (
    MigrationError,
    PostDateError,
    log_message,
    report_ok,
    set_report_dir,
)
from haven_migrator.utils.pre_flight_checks import run_pre_flight_checks

# WordPress ships every new site with this post
DEFAULT_POST_TITLE = "Hello world"
DEFAULT_POST_MARKER = "Welcome to WordPress"

NULL_DATE = "0000-00-00 00:00:00"
UNDATED_SORT_KEY = "9999"


def _usable_date(value: Optional[str]) -> bool:
    return bool(value and value.strip() and value.strip() != NULL_DATE)


def post_sort_key(entry: PostEntry) -> str:
    """Export dates sort chronologically as text; undated or unparseable dates go last."""
    if not _usable_date(entry.source_date):
        return UNDATED_SORT_KEY
    value = entry.source_date.strip()
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return UNDATED_SORT_KEY
    return value


def parse_post_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError as e:
        raise PostDateError(f"Unparseable post date {value!r}") from e


def resolve_post_date(entry: PostEntry, now: Callable[[], datetime] = datetime.now) -> datetime:
    """
    Pick the post date: the publish date, else the last-modified date
    (drafts often have no publish date), else the current time.

    :raises PostDateError: if the chosen date string is malformed.
    """
    if _usable_date(entry.source_date):
        return parse_post_date(entry.source_date)
    if _usable_date(entry.modified_date):
        return parse_post_date(entry.modified_date)
    return now()


def is_default_post(entry: PostEntry) -> bool:
    return entry.title == DEFAULT_POST_TITLE and (
        entry.raw_content is None or DEFAULT_POST_MARKER in entry.raw_content
    )


class HavenImportTool:
    """
    Encapsulates the state and behavior of one WordPress → Haven import.
    This class reads configuration, extracts posts and attachments,
    resolves authors and creates the posts.  Progress goes to the console
    and the run log through :func:`log_message`.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        config_file: Optional[str] = None,
        client: Optional[HavenClient] = None,
        session=None,
    ) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("haven", {})
        config["haven"].setdefault("base_url", os.getenv("HAVEN_BASE_URL", "http://localhost:3000"))
        config["haven"].setdefault("api_token", os.getenv("HAVEN_API_TOKEN", ""))

        config.setdefault("migration", {})
        config["migration"].setdefault("author_map", os.getenv("AUTHOR_MAP", ""))
        config["migration"].setdefault("dry_run", os.getenv("DRY_RUN") == "1")
        config["migration"].setdefault("limit", None)
        config["migration"].setdefault("report_dir", os.path.join("reports", "migration"))
        config["migration"].setdefault("download_timeout", 30)
        config["migration"].setdefault("resolve_original_media", True)

        self.config = config
        self._client = client
        self.session = session
        set_report_dir(config["migration"]["report_dir"])

    @property
    def client(self) -> HavenClient:
        if self._client is None:
            self._client = HavenClient(self.config["haven"])
        return self._client

    def log_message(self, message: str, level: str = "INFO") -> None:
        log_message(message, level)

    def extract_posts(self, xml_path: str, items: Optional[list] = None) -> List[PostEntry]:
        posts = extract_posts_from_xml(xml_path, items)
        self.log_message(f"Found {len(posts)} posts to import")
        return posts

    def extract_attachments(self, xml_path: str, items: Optional[list] = None) -> AttachmentIndex:
        attachments = extract_attachments_from_xml(xml_path, items)
        self.log_message(f"Found {len(attachments)} attachments in XML")
        return attachments

    def resolve_authors(self) -> AuthorMapping:
        return resolve_authors(self.config["migration"]["author_map"], self.client.find_user_by_email)

    def media_cache(self, attachments: Optional[AttachmentIndex] = None) -> MediaCache:
        migration = self.config["migration"]
        return MediaCache(
            self.client,
            session=self.session,
            timeout=float(migration["download_timeout"]),
            attachments=attachments,
            resolve_original_media=bool(migration["resolve_original_media"]),
        )

    def import_posts(
        self,
        posts: List[PostEntry],
        authors: AuthorMapping,
        media_cache: MediaCache,
        *,
        dry_run: Optional[bool] = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> ImportReport:
        """
        Import ``posts`` in chronological order.

        Default WordPress posts are skipped.  Every other post gets an author
        (mapped or fallback) and a date, then its content is converted and
        the post is created.  With ``dry_run`` nothing is downloaded or
        written; the counts still match a live run.

        :raises PostDateError: if a post date cannot be parsed.
        :raises requests.HTTPError: if Haven rejects a record.
        """
        if dry_run is None:
            dry_run = bool(self.config["migration"]["dry_run"])
        limit: Optional[int] = self.config["migration"].get("limit")

        report = ImportReport()
        converter = MarkdownConverter(media_cache)
        entries = sorted(posts, key=post_sort_key)
        if limit is not None:
            entries = entries[:limit]

        for entry in entries:
            if is_default_post(entry):
                self.log_message(f"Skipping default WordPress post: {entry.title}")
                report_ok("POST_SKIPPED", {"title": entry.title})
                report.skipped += 1
                continue

            author = authors.author_for(entry.source_author_id)
            self.log_message(
                f"--- Importing: {entry.title} [{entry.status.value}] "
                f"by {entry.source_author_id} -> {author.email or author.id}"
            )
            post_date = resolve_post_date(entry, now)

            if dry_run:
                self.log_message(f"  Date: {post_date.isoformat()}")
                self.log_message(f"  Content length: {len(entry.raw_content or '')} chars")
                report.imported += 1
                continue

            post = ImportedPost(
                content=f"# {entry.title}\n\n" + converter.convert(entry.raw_content),
                datetime=post_date,
                author=author,
            )
            post_id = self.client.create_post(post.content, post.datetime, post.author)
            self.log_message(f"  Created post #{post_id} ({post_date:%Y-%m-%d})")
            report_ok("POST_CREATED", {"title": entry.title}, {"post_id": post_id, "author_id": author.id})
            report.post_ids.append(post_id)
            report.imported += 1

        report.media_downloaded = media_cache.downloaded_count
        return report

    def run(self, xml_path: str) -> ImportReport:
        """
        Run a complete import from the export at ``xml_path``.

        :raises MigrationError: on any condition that aborts the run.
        """
        set_report_dir(self.config["migration"]["report_dir"])
        run_pre_flight_checks(xml_path, self.config)
        if self.config["migration"]["dry_run"]:
            self.log_message("=== DRY RUN ===")

        authors = self.resolve_authors()
        try:
            items = load_export_items(xml_path)
        except ET.ParseError as e:
            raise MigrationError(f"Could not parse WordPress export {xml_path}: {e}") from e
        attachments = self.extract_attachments(xml_path, items)
        posts = self.extract_posts(xml_path, items)

        with self.media_cache(attachments) as media:
            report = self.import_posts(posts, authors, media)

        self.log_message("=== Import complete ===")
        self.log_message(f"Imported: {report.imported}")
        self.log_message(f"Skipped: {report.skipped}")
        self.log_message(f"Media downloaded: {report.media_downloaded}")
        return report
