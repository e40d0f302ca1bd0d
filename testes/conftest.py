import os
import sys
from typing import Dict, List, Optional

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
import requests

from haven_migrator.models import ImageRecord, UserRef
from haven_migrator.utils import errors


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"") -> None:
        self.status_code = status_code
        self.body = body
        self.text = body.decode("utf-8", "replace")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]


class FakeSession:
    """Download session; ``responses`` maps URL -> bytes, status code or exception."""

    def __init__(self) -> None:
        self.responses: Dict[str, object] = {}
        self.calls: List[str] = []

    def get(self, url, stream=False, timeout=None):
        self.calls.append(url)
        outcome = self.responses.get(url, b"media-bytes")
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return FakeResponse(outcome, b"not found")
        return FakeResponse(200, outcome)


class FakeHaven:
    """In-memory stand-in for the Haven API client."""

    def __init__(self) -> None:
        self.users: Dict[str, UserRef] = {}
        self.images: List[dict] = []
        self.posts: List[dict] = []
        self.lookups: List[str] = []

    def find_user_by_email(self, email: str) -> Optional[UserRef]:
        self.lookups.append(email)
        return self.users.get(email)

    def create_image(self, file, filename: str, content_type: str) -> ImageRecord:
        self.images.append({"data": file.read(), "filename": filename, "content_type": content_type})
        return ImageRecord(id=str(len(self.images)), filename=filename, content_type=content_type)

    def create_post(self, content, post_datetime, author) -> str:
        self.posts.append({"content": content, "datetime": post_datetime, "author": author})
        return str(100 + len(self.posts))


WXR_DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
  xmlns:content="http://purl.org/rss/1.0/modules/content/"
  xmlns:dc="http://purl.org/dc/elements/1.1/"
  xmlns:wp="http://wordpress.org/export/1.2/">
<channel>
  <title>My blog</title>
  <item>
    <title>Draft</title>
    <dc:creator><![CDATA[alice]]></dc:creator>
    <content:encoded><![CDATA[<!-- wp:paragraph --><p>Not finished</p><!-- /wp:paragraph -->]]></content:encoded>
    <wp:post_id>4</wp:post_id>
    <wp:post_date><![CDATA[0000-00-00 00:00:00]]></wp:post_date>
    <wp:post_modified><![CDATA[2019-06-01 08:30:00]]></wp:post_modified>
    <wp:status><![CDATA[draft]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>Second</title>
    <dc:creator><![CDATA[bob]]></dc:creator>
    <content:encoded><![CDATA[<!-- wp:image -->
<figure class="wp-block-image size-large"><img src="https://example.com/wp-content/uploads/2020/01/cat-1024x768.jpg" alt=""/></figure>
<!-- /wp:image -->

<!-- wp:audio -->
<figure class="wp-block-audio"><audio controls src="ftp://example.com/song.mp3"></audio></figure>
<!-- /wp:audio -->]]></content:encoded>
    <wp:post_id>3</wp:post_id>
    <wp:post_date><![CDATA[2021-05-02 10:00:00]]></wp:post_date>
    <wp:post_modified><![CDATA[2021-05-03 10:00:00]]></wp:post_modified>
    <wp:status><![CDATA[private]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>First</title>
    <dc:creator><![CDATA[alice]]></dc:creator>
    <content:encoded><![CDATA[<!-- wp:image -->
<figure class="wp-block-image"><img src="https://example.com/wp-content/uploads/2020/01/cat.jpg" alt=""/><figcaption>Cat</figcaption></figure>
<!-- /wp:image -->]]></content:encoded>
    <wp:post_id>2</wp:post_id>
    <wp:post_date><![CDATA[2020-01-01 09:00:00]]></wp:post_date>
    <wp:status><![CDATA[publish]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>Hello world</title>
    <dc:creator><![CDATA[alice]]></dc:creator>
    <content:encoded><![CDATA[<p>Welcome to WordPress. This is your first post.</p>]]></content:encoded>
    <wp:post_id>1</wp:post_id>
    <wp:post_date><![CDATA[2019-12-31 00:00:00]]></wp:post_date>
    <wp:status><![CDATA[publish]]></wp:status>
    <wp:post_type><![CDATA[post]]></wp:post_type>
  </item>
  <item>
    <title>cat</title>
    <guid isPermaLink="false">https://example.com/?attachment_id=5</guid>
    <wp:post_id>5</wp:post_id>
    <wp:post_type><![CDATA[attachment]]></wp:post_type>
    <wp:attachment_url><![CDATA[https://example.com/wp-content/uploads/2020/01/cat.jpg]]></wp:attachment_url>
  </item>
  <item>
    <title>About</title>
    <content:encoded><![CDATA[<p>About page</p>]]></content:encoded>
    <wp:post_id>6</wp:post_id>
    <wp:post_type><![CDATA[page]]></wp:post_type>
  </item>
</channel>
</rss>
"""


@pytest.fixture(autouse=True)
def report_dir(tmp_path):
    """Keep run logs and JSONL reports out of the working directory."""
    previous = errors.get_report_dir()
    path = str(tmp_path / "reports")
    errors.set_report_dir(path)
    yield path
    errors.set_report_dir(previous)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def fake_haven():
    return FakeHaven()


@pytest.fixture
def wxr_file(tmp_path):
    path = tmp_path / "export.xml"
    path.write_text(WXR_DOCUMENT, encoding="utf-8")
    return str(path)
