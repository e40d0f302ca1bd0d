import tempfile

import pytest
import requests

from haven_migrator.migrators import media_cache as media_cache_module
from haven_migrator.migrators.media_cache import MediaCache, content_type_for
from haven_migrator.models import AttachmentIndex, AttachmentRecord

PHOTO = "https://example.com/uploads/2021/02/photo.JPG"


@pytest.fixture
def cache(fake_haven, fake_session):
    with MediaCache(fake_haven, session=fake_session) as media:
        yield media


def test_fetch_downloads_once_and_reports_filename_and_extension(cache, fake_session):
    fake_session.responses[PHOTO] = b"jpeg-data"
    payload = cache.fetch(PHOTO)
    assert payload.filename == "photo.JPG"
    assert payload.extension == ".jpg"
    assert payload.file.read() == b"jpeg-data"

    assert cache.fetch(PHOTO) is payload
    assert fake_session.calls == [PHOTO]
    assert cache.downloaded_count == 1


def test_failed_download_is_not_retried(cache, fake_session):
    fake_session.responses[PHOTO] = requests.ConnectionError("boom")
    assert cache.fetch(PHOTO) is None
    assert cache.fetch(PHOTO) is None
    assert fake_session.calls == [PHOTO]
    assert PHOTO in cache
    assert cache.downloaded_count == 0


def test_non_success_status_counts_as_failure(cache, fake_session):
    fake_session.responses[PHOTO] = 500
    assert cache.fetch(PHOTO) is None
    assert cache.fetch(PHOTO) is None
    assert fake_session.calls == [PHOTO]


@pytest.mark.parametrize("url", ["ftp://example.com/a.mp3", "data:image/png;base64,AAAA", "/relative/a.png"])
def test_non_http_urls_are_never_fetched(cache, fake_session, report_dir, url):
    assert cache.fetch(url) is None
    assert fake_session.calls == []
    with open(f"{report_dir}/errors.jsonl", encoding="utf-8") as f:
        assert "MEDIA_SKIPPED" in f.read()


def test_partial_download_file_is_released_on_failure(fake_haven, fake_session, monkeypatch):
    created = []
    real_temporary_file = tempfile.TemporaryFile

    def tracking_temporary_file(*args, **kwargs):
        f = real_temporary_file(*args, **kwargs)
        created.append(f)
        return f

    monkeypatch.setattr(media_cache_module.tempfile, "TemporaryFile", tracking_temporary_file)
    fake_session.responses[PHOTO] = requests.Timeout("slow")
    with MediaCache(fake_haven, session=fake_session) as media:
        assert media.fetch(PHOTO) is None
        assert created[0].closed


def test_close_releases_downloaded_files(fake_haven, fake_session):
    media = MediaCache(fake_haven, session=fake_session)
    payload = media.fetch(PHOTO)
    assert not payload.file.closed
    media.close()
    assert payload.file.closed


def test_close_only_closes_a_session_the_cache_created(fake_haven, fake_session, monkeypatch):
    closed = []

    class _Session:
        def close(self):
            closed.append(self)

    monkeypatch.setattr(media_cache_module.requests, "Session", _Session)
    with MediaCache(fake_haven) as own:
        pass
    assert closed == [own.session]

    with MediaCache(fake_haven, session=fake_session):
        pass
    assert closed == [own.session]


def test_resolve_creates_one_record_per_url(cache, fake_haven):
    first = cache.resolve(PHOTO)
    second = cache.resolve(PHOTO)
    assert first == second
    record, extension = first
    assert extension == ".jpg"
    assert record.content_type == "image/jpeg"
    assert len(fake_haven.images) == 1


def test_resolve_returns_none_for_failed_media(cache, fake_session, fake_haven):
    fake_session.responses[PHOTO] = 404
    assert cache.resolve(PHOTO) is None
    assert fake_haven.images == []


def test_create_image_record_passes_none_through(cache, fake_haven):
    assert cache.create_image_record(None) is None
    assert fake_haven.images == []


def test_resized_variant_resolves_to_original_attachment(fake_haven, fake_session):
    original = "https://example.com/uploads/cat.png"
    attachments = AttachmentIndex(by_url={original: AttachmentRecord(url=original, filename="cat.png")})
    with MediaCache(fake_haven, session=fake_session, attachments=attachments) as media:
        assert media.original_url("https://example.com/uploads/cat-300x200.png?ver=2") == original
        assert media.original_url("https://example.com/uploads/dog-300x200.png") == (
            "https://example.com/uploads/dog-300x200.png"
        )
        media.resolve("https://example.com/uploads/cat-300x200.png")
        media.resolve(original)
    assert fake_session.calls == [original]
    assert len(fake_haven.images) == 1


def test_original_lookup_can_be_disabled(fake_haven, fake_session):
    original = "https://example.com/uploads/cat.png"
    attachments = AttachmentIndex(by_url={original: AttachmentRecord(url=original, filename="cat.png")})
    media = MediaCache(fake_haven, session=fake_session, attachments=attachments, resolve_original_media=False)
    resized = "https://example.com/uploads/cat-300x200.png"
    assert media.original_url(resized) == resized


@pytest.mark.parametrize(
    "extension, expected",
    [
        (".jpg", "image/jpeg"),
        (".JPEG", "image/jpeg"),
        (".png", "image/png"),
        (".gif", "image/gif"),
        (".webp", "image/webp"),
        (".m4a", "audio/mp4"),
        (".mp3", "audio/mpeg"),
        (".mp4", "video/mp4"),
        (".mov", "video/quicktime"),
        (".pdf", "application/octet-stream"),
        ("", "application/octet-stream"),
    ],
)
def test_content_type_for(extension, expected):
    assert content_type_for(extension) == expected
