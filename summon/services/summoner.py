# summon/services/summoner.py
# Responsibility: Orchestrates one thumbnail lookup (Fetch -> Classify -> Handle -> Format).

import asyncio
from functools import lru_cache
from typing import List, Optional, TypedDict

import httpx

from summon.config.settings import SummonSettings, settings
from summon.crawler.batcher import CandidateFetchBatcher
from summon.crawler.dispatcher import (
    DefaultHandler,
    Dispatcher,
    HtmlHandler,
    ImageHandler,
    Thumbnails,
)
from summon.crawler.fetcher import ResourceFetcher, build_client
from summon.crawler.url_resolver import normalize_input_url
from summon.indexer.image_selector import ImageSelector, TierTable


class ThumbnailResult(TypedDict):
    source: str
    type: str
    thumbnails: List[str]


def format_response(url: str, mimetype: str, thumbnails: Thumbnails) -> ThumbnailResult:
    """
    Builds the output record, turning a scalar thumbnail into a one-element
    list and None into an empty one.
    """
    if thumbnails is None:
        thumbnail_list: List[str] = []
    elif isinstance(thumbnails, str):
        thumbnail_list = [thumbnails]
    else:
        thumbnail_list = list(thumbnails)

    return ThumbnailResult(source=url, type=mimetype, thumbnails=thumbnail_list)


class Summoner:
    """
    Entry point of the pipeline.
    Holds only immutable configuration; every fetch() gets its own HTTP
    client and selection state.
    """

    def __init__(
        self,
        config: SummonSettings = settings.SUMMON,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config (SummonSettings): Thresholds, tiers, MIME tables, user agent.
            transport (Optional[httpx.AsyncBaseTransport]): Custom transport,
                e.g. httpx.MockTransport in tests.
        """
        self.config = config
        self.transport = transport
        # Validates the tier table up front
        self.tier_table = TierTable.from_settings(config)

    async def fetch(self, url: str) -> ThumbnailResult:
        """
        Resolves thumbnails for a URL.

        Raises:
            FetchError: The resource itself could not be retrieved.
            EmptySourceError: An HTML resource had no body.
            UnsupportedTypeError: No handler for the classified type.
        """
        url = normalize_input_url(url)
        async with build_client(self.config, self.transport) as client:
            fetcher = ResourceFetcher(client)
            resource = await fetcher.fetch(url)

            dispatcher = Dispatcher(
                image_handler=ImageHandler(),
                html_handler=HtmlHandler(
                    fetcher=fetcher,
                    batcher=CandidateFetchBatcher(client, self.config),
                    selector=ImageSelector(self.tier_table),
                ),
                default_handler=DefaultHandler(),
                config=self.config,
            )
            thumbnails = await dispatcher.dispatch(resource)

        return format_response(resource.url, resource.mimetype, thumbnails)


def summon(url: str, config: Optional[SummonSettings] = None) -> ThumbnailResult:
    """Blocking wrapper around Summoner.fetch for scripts."""
    summoner = Summoner(config or settings.SUMMON)
    return asyncio.run(summoner.fetch(url))


@lru_cache()
def get_summoner() -> Summoner:
    """Dependency injection provider for Summoner."""
    return Summoner()
