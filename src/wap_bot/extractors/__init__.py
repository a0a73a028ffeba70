"""Provider registry: URL matchers paired with title resolvers.

The registry is built once at startup and handed to the summarizer. Providers are
tried in a fixed priority order so extraction is deterministic.
"""

from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import httpx

from ..errors import NoURLFoundError, RegistryMismatchError
from ..schemas.links import DEFAULT_PROVIDER_ORDER, Provider
from .titles import SpotifyTitleResolver, TitleResolver, YouTubeTitleResolver
from .urls import LinkExtractor, spotify_extractor, youtube_extractor, youtube_music_extractor


class ProviderRegistry:
    def __init__(
        self,
        extractors: Mapping[Provider, LinkExtractor],
        resolvers: Mapping[Provider, TitleResolver],
        order: Optional[Sequence[Provider]] = None,
    ):
        extractor_keys = set(extractors)
        resolver_keys = set(resolvers)
        if extractor_keys != resolver_keys:
            missing_resolvers = sorted(p.value for p in extractor_keys - resolver_keys)
            missing_extractors = sorted(p.value for p in resolver_keys - extractor_keys)
            raise RegistryMismatchError(
                f"extractor/resolver providers differ: "
                f"no resolver for {missing_resolvers}, no extractor for {missing_extractors}"
            )

        if order is None:
            order = [p for p in DEFAULT_PROVIDER_ORDER if p in extractor_keys]
            order += sorted(extractor_keys - set(order), key=lambda p: p.value)
        order = list(order)
        if len(order) != len(set(order)) or set(order) != extractor_keys:
            raise RegistryMismatchError(
                f"priority order {[p.value for p in order]} does not list every provider exactly once"
            )

        self.order: List[Provider] = order
        self._extractors: Dict[Provider, LinkExtractor] = dict(extractors)
        self._resolvers: Dict[Provider, TitleResolver] = dict(resolvers)

    @property
    def providers(self) -> List[Provider]:
        return list(self.order)

    def __iter__(self) -> Iterator[Provider]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def extractor(self, provider: Provider) -> LinkExtractor:
        return self._extractors[provider]

    def resolver(self, provider: Provider) -> TitleResolver:
        return self._resolvers[provider]

    def extract(self, text: str) -> Tuple[str, Provider]:
        """First provider with a match wins; an ambiguous match stops the search."""
        for provider in self.order:
            try:
                url = self._extractors[provider].extract(text)
            except NoURLFoundError:
                continue
            return url, provider
        raise NoURLFoundError()


def build_default_registry(client: httpx.Client, timeout: float = 10.0, attempts: int = 2) -> ProviderRegistry:
    youtube = YouTubeTitleResolver(client, timeout=timeout, attempts=attempts)
    return ProviderRegistry(
        extractors={
            Provider.SPOTIFY: spotify_extractor(),
            Provider.YOUTUBE: youtube_extractor(),
            Provider.YOUTUBE_MUSIC: youtube_music_extractor(),
        },
        resolvers={
            Provider.SPOTIFY: SpotifyTitleResolver(client, timeout=timeout, attempts=attempts),
            Provider.YOUTUBE: youtube,
            Provider.YOUTUBE_MUSIC: youtube,
        },
        order=DEFAULT_PROVIDER_ORDER,
    )
