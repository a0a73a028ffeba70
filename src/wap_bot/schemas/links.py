"""Pydantic schemas for extracted links and the summary artifact.

Defines Provider, ParsedLink, ThreadMessage and SummaryArtifact.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict

class Provider(str, Enum):
    SPOTIFY = "spotify"
    YOUTUBE = "youtube"
    YOUTUBE_MUSIC = "youtube-music"

    @property
    def column(self) -> str:
        return _COLUMNS[self]

_COLUMNS = {
    Provider.SPOTIFY: "Spotify URL",
    Provider.YOUTUBE: "YouTube URL",
    Provider.YOUTUBE_MUSIC: "YouTube Music URL",
}

# Extraction precedence and CSV column order.
DEFAULT_PROVIDER_ORDER = (Provider.SPOTIFY, Provider.YOUTUBE, Provider.YOUTUBE_MUSIC)

class ParsedLink(BaseModel):
    title: str
    url: str
    provider: Provider

class ThreadMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""
    user: Optional[str] = None
    username: Optional[str] = None
    ts: Optional[str] = None

    @property
    def author(self) -> Optional[str]:
        return self.user or self.username

class SummaryArtifact(BaseModel):
    content: bytes
    filename: str
    title: str
    initial_comment: str
    channel: str
    thread_ts: str
    row_count: int

    @property
    def size(self) -> int:
        return len(self.content)
