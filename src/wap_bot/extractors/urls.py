"""Provider URL matchers.

Each matcher accepts exactly one occurrence of its provider's single-track URL in a
piece of free text. Zero occurrences is NoURLFoundError, two or more is
MultipleURLsFoundError: we never guess which of several links was meant.
"""

import re
from typing import Pattern, Protocol
from ..errors import MultipleURLsFoundError, NoURLFoundError
from ..schemas.links import Provider

# Only /track/ paths: playlist, album and artist links on the same host must not match.
SPOTIFY_TRACK_REGEX = re.compile(r"https?://(?:open\.)?spotify\.com/track/[\w\-?=&]+", re.ASCII)
# The scheme must be followed directly by www./youtube.com/youtu.be so music.youtube.com never matches.
YOUTUBE_VIDEO_REGEX = re.compile(r"https?://(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)[\w\-]+", re.ASCII)
YOUTUBE_MUSIC_REGEX = re.compile(r"https?://music\.youtube\.com/watch\?v=[\w\-]+(?:&[\w=&\-]+)?", re.ASCII)


class LinkExtractor(Protocol):
    provider: Provider

    def extract(self, text: str) -> str:
        ...


def find_single_match(text: str, regex: Pattern[str]) -> str:
    """Returns the only match of ``regex`` in ``text``."""
    matches = regex.findall(text or "")
    if not matches:
        raise NoURLFoundError()
    if len(matches) != 1:
        raise MultipleURLsFoundError(matches=matches)
    return matches[0]


class RegexLinkExtractor:
    def __init__(self, provider: Provider, regex: Pattern[str]):
        self.provider = provider
        self.regex = regex

    def extract(self, text: str) -> str:
        return find_single_match(text, self.regex)

    def __repr__(self) -> str:
        return f"RegexLinkExtractor({self.provider.value!r}, {self.regex.pattern!r})"


def spotify_extractor() -> RegexLinkExtractor:
    return RegexLinkExtractor(Provider.SPOTIFY, SPOTIFY_TRACK_REGEX)

def youtube_extractor() -> RegexLinkExtractor:
    return RegexLinkExtractor(Provider.YOUTUBE, YOUTUBE_VIDEO_REGEX)

def youtube_music_extractor() -> RegexLinkExtractor:
    return RegexLinkExtractor(Provider.YOUTUBE_MUSIC, YOUTUBE_MUSIC_REGEX)
