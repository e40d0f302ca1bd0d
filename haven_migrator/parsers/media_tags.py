from __future__ import annotations

from urllib.parse import quote

from haven_migrator.models import ImageRecord

AUDIO_TYPES = {".m4a": "audio/mp4", ".mp3": "audio/mpeg"}
VIDEO_EXTENSIONS = (".mp4", ".mov")


def raw_media_path(record: ImageRecord) -> str:
    return f"/images/raw/{quote(str(record.id), safe='')}/{quote(record.filename)}"


def media_tag_for(record: ImageRecord, extension: str) -> str:
    """
    Build the inline tag Haven content uses to embed an imported media file.

    Audio and video get a player element; anything else is an image.  The
    tag is padded with blank lines so it stands as its own markdown block.
    """
    path = raw_media_path(record)
    ext = (extension or "").lower()
    if ext in AUDIO_TYPES:
        return f'\n\n<audio controls><source src="{path}" type="{AUDIO_TYPES[ext]}"></audio>\n\n'
    if ext in VIDEO_EXTENSIONS:
        return f'\n\n<video controls><source src="{path}" type="video/mp4"></video>\n\n'
    return f'\n\n<img src="{path}"></img>\n\n'
