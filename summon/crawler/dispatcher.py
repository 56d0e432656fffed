# summon/crawler/dispatcher.py
# Responsibility: Classify a MIME type and route the resource to the matching handler.

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Union

from summon.config.settings import SummonSettings, settings
from summon.crawler.batcher import CandidateFetchBatcher
from summon.crawler.fetcher import ResourceFetcher, ResourceResult
from summon.crawler.parser import BaseImageExtractor, ImageExtractor
from summon.errors import EmptySourceError, UnsupportedTypeError
from summon.indexer.image_selector import ImageSelector

logger = logging.getLogger(__name__)

# A handler may answer with nothing, a single URL, or a ranked list.
Thumbnails = Union[None, str, List[str]]


class ResourceType(str, Enum):
    IMAGE = "image"
    HTML = "html"
    DEFAULT = "default"


def classify(mimetype: str, config: SummonSettings = settings.SUMMON) -> ResourceType:
    if mimetype in config.IMAGE_MIMES:
        return ResourceType.IMAGE
    if mimetype in config.HTML_MIMES:
        return ResourceType.HTML
    return ResourceType.DEFAULT


# -------------------------------
# Handlers
# -------------------------------
class BaseHandler(ABC):
    @abstractmethod
    async def handle(self, resource: ResourceResult) -> Thumbnails:
        pass


class DefaultHandler(BaseHandler):
    """Unknown types have no thumbnail."""

    async def handle(self, resource: ResourceResult) -> Thumbnails:
        return None


class ImageHandler(BaseHandler):
    """An image is its own thumbnail."""

    async def handle(self, resource: ResourceResult) -> Thumbnails:
        return resource.url


class HtmlHandler(BaseHandler):
    """
    Runs the candidate pipeline for an HTML page:
    extract <img> URLs -> fetch and decode concurrently -> rank and select.
    """

    def __init__(
        self,
        fetcher: ResourceFetcher,
        batcher: CandidateFetchBatcher,
        selector: ImageSelector,
        extractor: BaseImageExtractor = ImageExtractor,
    ):
        self.fetcher = fetcher
        self.batcher = batcher
        self.selector = selector
        self.extractor = extractor

    async def handle(self, resource: ResourceResult) -> Thumbnails:
        # HEAD responses carry no body
        if not resource.body:
            resource = await self.fetcher.refetch(resource)
        if not resource.body:
            raise EmptySourceError(resource.url)

        urls = self.extractor.extract(resource.url, resource.body)
        logger.info("[Html] %d distinct images on %s", len(urls), resource.url)

        candidates = await self.batcher.fetch_all(urls)
        thumbnails = self.selector.select(candidates)
        logger.info("[Html] Selected %d of %d candidates", len(thumbnails), len(candidates))
        return thumbnails


# -------------------------------
# Dispatcher
# -------------------------------
class Dispatcher:
    """
    Closed set of handlers, one per ResourceType.
    A missing handler is a wiring defect and fails immediately.
    """

    def __init__(
        self,
        image_handler: Optional[BaseHandler],
        html_handler: Optional[BaseHandler],
        default_handler: Optional[BaseHandler],
        config: SummonSettings = settings.SUMMON,
    ):
        self.image_handler = image_handler
        self.html_handler = html_handler
        self.default_handler = default_handler
        self.config = config

    def handler_for(self, resource_type: ResourceType) -> BaseHandler:
        if resource_type is ResourceType.IMAGE:
            handler = self.image_handler
        elif resource_type is ResourceType.HTML:
            handler = self.html_handler
        elif resource_type is ResourceType.DEFAULT:
            handler = self.default_handler
        else:
            handler = None

        if handler is None:
            raise UnsupportedTypeError(getattr(resource_type, "value", str(resource_type)))
        return handler

    async def dispatch(self, resource: ResourceResult) -> Thumbnails:
        resource_type = classify(resource.mimetype, self.config)
        return await self.handler_for(resource_type).handle(resource)
