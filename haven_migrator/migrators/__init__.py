"""
Haven storage and media download.

This subpackage provides the :class:`HavenClient` used to look up users and
create image and post records over the Haven API, and the
:class:`MediaCache` that downloads each referenced media URL at most once
per run.
"""

from .haven_migrator import HavenClient, RateLimiter, with_retries
from .media_cache import MediaCache, content_type_for

__all__ = ["HavenClient", "MediaCache", "RateLimiter", "content_type_for", "with_retries"]
