"""
Haven API helpers for the WordPress → Haven import.

This module implements the low-level interactions with a Haven instance:
looking up users by email, storing media files as image records, and
creating posts.  A simple rate limiter keeps the import from flooding the
server, and a generic retry wrapper handles transient network errors and
server-side rate limiting responses (429 or 5xx).

Usage example::

    from haven_migrator.migrators.haven_migrator import HavenClient

    client = HavenClient({"base_url": "https://haven.example.com", "api_token": "..."})
    author = client.find_user_by_email("alice@example.com")
    with open("photo.jpg", "rb") as f:
        image = client.create_image(f, "photo.jpg", "image/jpeg")
    post_id = client.create_post("# Hello\\n\\nWorld", datetime.now(), author)
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any, BinaryIO, Callable, Dict, Optional

import requests

from haven_migrator.models import ImageRecord, UserRef

###############################################################################
# Rate limiting and retry utilities
###############################################################################

class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute.
    """

    def __init__(self, rpm: int = 300) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._last = 0.0

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        dt = now - self._last
        if dt < self.interval:
            sleep_fn(self.interval - dt)
        self._last = time_fn()


def haven_headers(cfg: Dict[str, Any]) -> Dict[str, str]:
    """
    Construct the default headers for Haven API requests.

    :param cfg: A configuration dictionary, optionally with ``api_token``.
    :return: A dictionary of headers.
    """
    headers = {"Accept": "application/json"}
    if cfg.get("api_token"):
        headers["Authorization"] = f"Bearer {cfg['api_token']}"
    return headers


def with_retries(fn: Callable[[], requests.Response], *, max_attempts: int = 5, base_delay: float = 0.7) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  Backoff is exponential.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status not in (429, 500, 502, 503, 504) or attempt >= max_attempts - 1:
                raise
            # Use Retry-After header if provided, otherwise exponential backoff
            retry_after = e.response.headers.get("Retry-After")
            if retry_after:
                wait = float(retry_after)
            else:
                wait = base_delay * (2 ** attempt)
            time.sleep(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            time.sleep(base_delay * (2 ** attempt))
            attempt += 1


###############################################################################
# Haven client
###############################################################################

class HavenClient:
    """
    The storage side of the import: user lookup, image records and posts.

    ``cfg`` is the ``haven`` section of the migration configuration and
    must include ``base_url``.
    """

    def __init__(self, cfg: Dict[str, Any], *, timeout: float = 30.0, limiter: Optional[RateLimiter] = None) -> None:
        self.cfg = cfg
        self.base_url = cfg["base_url"].rstrip("/")
        self.timeout = timeout
        self._limiter = limiter or RateLimiter()

    def find_user_by_email(self, email: str) -> Optional[UserRef]:
        """
        Look up a Haven user by email.

        :return: The user, or ``None`` when no user has that email.
        :raises requests.HTTPError: on any other API failure.
        """
        self._limiter.wait()
        def do_request() -> requests.Response:
            return requests.get(
                f"{self.base_url}/api/users",
                headers=haven_headers(self.cfg),
                params={"email": email},
                timeout=self.timeout,
            )
        try:
            resp = with_retries(do_request)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise
        data = resp.json()
        if isinstance(data, dict):
            users = data.get("users", [data.get("user", data)])
        else:
            users = data
        for user in users or []:
            if user and user.get("id") is not None:
                return UserRef(id=user["id"], email=user.get("email") or email)
        return None

    def create_image(self, file: BinaryIO, filename: str, content_type: str) -> ImageRecord:
        """
        Store a media file as a Haven image record (multipart, single ``file`` field).

        :raises requests.HTTPError: on failure.
        """
        self._limiter.wait()
        def do_request() -> requests.Response:
            file.seek(0)
            return requests.post(
                f"{self.base_url}/api/images",
                headers=haven_headers(self.cfg),
                files={"file": (filename, file, content_type)},
                timeout=self.timeout,
            )
        resp = with_retries(do_request)
        data = resp.json()
        image = data.get("image", data)
        return ImageRecord(
            id=image["id"],
            filename=image.get("filename") or filename,
            content_type=image.get("content_type") or content_type,
        )

    def create_post(self, content: str, post_datetime: datetime, author: UserRef) -> str:
        """
        Create a post and return its identifier.

        :raises requests.HTTPError: on failure.
        """
        body = {
            "post": {
                "content": content,
                "datetime": post_datetime.isoformat(),
                "author_id": author.id,
            }
        }
        self._limiter.wait()
        def do_request() -> requests.Response:
            return requests.post(
                f"{self.base_url}/api/posts",
                headers={**haven_headers(self.cfg), "Content-Type": "application/json"},
                json=body,
                timeout=self.timeout,
            )
        resp = with_retries(do_request)
        data = resp.json()
        return str(data.get("post", data)["id"])
