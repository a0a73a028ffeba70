"""Title lookups for extracted links.

Each resolver makes a single GET (retried on transport errors only) and turns the
answer into a human readable "Artist - Title" string.
"""

import html
import re
import threading
from typing import Any, Dict, Optional, Protocol

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, stop_when_event_set, wait_fixed

from ..errors import CancelledError, NoTitleFoundError, RequestFailedError
from ..log import get_logger

logger = get_logger("titles")

OG_TITLE_REGEX = re.compile(r'<meta\s+property="og:title"\s+content="([^"]+)"')
OG_DESCRIPTION_REGEX = re.compile(r'<meta\s+property="og:description"\s+content="([^"]+)"')
# og:description on a track page: "Artist(s) · Album · Song · Year"
SPOTIFY_DESCRIPTION_SEPARATOR = " · "

YOUTUBE_OEMBED_URL = "https://www.youtube.com/oembed"

DEFAULT_HEADERS = {
    "User-Agent": "WapBot/1.0 (slack thread summarizer)"
}


class TitleResolver(Protocol):
    def resolve(self, url: str, cancel: Optional[threading.Event] = None) -> str:
        ...


class HttpTitleResolver:
    """Shared request handling: bounded timeout, retries, status and error mapping."""

    def __init__(self, client: httpx.Client, timeout: float = 10.0, attempts: int = 2, retry_wait=None):
        self.client = client
        self.timeout = timeout
        self.attempts = attempts
        self.retry_wait = retry_wait if retry_wait is not None else wait_fixed(1)

    def _retrying(self, cancel: Optional[threading.Event]) -> Retrying:
        stop = stop_after_attempt(self.attempts)
        if cancel is not None:
            stop = stop | stop_when_event_set(cancel)
        return Retrying(
            stop=stop,
            wait=self.retry_wait,
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )

    def _fetch(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        with self.client.stream("GET", url, params=params, timeout=self.timeout) as resp:
            resp.read()
            return resp

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, cancel: Optional[threading.Event] = None) -> httpx.Response:
        if cancel is not None and cancel.is_set():
            raise CancelledError("titles.resolve")
        try:
            resp = self._retrying(cancel)(self._fetch, url, params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Title request to {url} failed: {e!r}")
            raise RequestFailedError(f"failed to fetch URL: {e}") from e

        if resp.status_code != httpx.codes.OK:
            raise RequestFailedError(f"failed to fetch URL: HTTP {resp.status_code}", status_code=resp.status_code)
        return resp


def parse_spotify_title(page: str) -> str:
    """Builds "Artist - Song" from a Spotify track page's Open Graph tags."""
    title_match = OG_TITLE_REGEX.search(page)
    if not title_match:
        raise NoTitleFoundError()
    song_title = html.unescape(title_match.group(1)).strip()
    if not song_title:
        raise NoTitleFoundError()

    desc_match = OG_DESCRIPTION_REGEX.search(page)
    if not desc_match:
        return song_title

    description = html.unescape(desc_match.group(1)).strip()
    artist, sep, _ = description.partition(SPOTIFY_DESCRIPTION_SEPARATOR)
    # Page layout changed: keep the whole description rather than failing
    if not sep:
        return f"{description} - {song_title}"
    return f"{artist} - {song_title}"


class SpotifyTitleResolver(HttpTitleResolver):
    def resolve(self, url: str, cancel: Optional[threading.Event] = None) -> str:
        resp = self.get(url, cancel=cancel)
        return parse_spotify_title(resp.text)


class YouTubeTitleResolver(HttpTitleResolver):
    """Uses the oEmbed endpoint, which also answers for music.youtube.com links."""

    def resolve(self, url: str, cancel: Optional[threading.Event] = None) -> str:
        resp = self.get(YOUTUBE_OEMBED_URL, params={"format": "json", "url": url}, cancel=cancel)
        try:
            data = resp.json()
        except ValueError as e:
            raise NoTitleFoundError(f"no title found in page: {e}") from e

        title = data.get("title") if isinstance(data, dict) else None
        if not isinstance(title, str) or not title.strip():
            raise NoTitleFoundError()
        return title.strip()
