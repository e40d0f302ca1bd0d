from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostStatus(str, Enum):
    PUBLISHED = "published"
    PRIVATE = "private"
    DRAFT = "draft"
    UNKNOWN = "unknown"

    @classmethod
    def from_wordpress(cls, value: Optional[str]) -> "PostStatus":
        # WordPress stores published posts as "publish"
        aliases = {"publish": cls.PUBLISHED, "private": cls.PRIVATE, "draft": cls.DRAFT}
        return aliases.get((value or "").strip().lower(), cls.UNKNOWN)


class AttachmentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    filename: str


class AttachmentIndex(BaseModel):
    """Attachments from the export, keyed by URL."""

    model_config = ConfigDict(frozen=True)

    by_url: Dict[str, AttachmentRecord] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.by_url)

    def __contains__(self, url: object) -> bool:
        return url in self.by_url

    def get(self, url: str) -> Optional[AttachmentRecord]:
        return self.by_url.get(url)


class PostEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = "(untitled)"
    status: PostStatus = PostStatus.UNKNOWN
    # Raw export strings; parsed when the post date is resolved.
    source_date: Optional[str] = None
    modified_date: Optional[str] = None
    raw_content: Optional[str] = None
    source_author_id: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v):
        if isinstance(v, PostStatus):
            return v
        return PostStatus.from_wordpress(v)


class UserRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v


class ImageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    content_type: str = "application/octet-stream"

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v


class ImportedPost(BaseModel):
    content: str
    datetime: dt.datetime
    author: UserRef


@dataclass
class MediaPayload:
    """A downloaded media file held in a temporary file until the run ends."""

    file: BinaryIO
    filename: str
    extension: str = ""


class ImportReport(BaseModel):
    imported: int = 0
    skipped: int = 0
    media_downloaded: int = 0
    post_ids: List[str] = Field(default_factory=list)
