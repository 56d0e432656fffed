# summon/crawler/fetcher.py
# Responsibility: Fetches the root resource (HEAD with GET fallback) and records its final URL and MIME type.

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from summon.config.settings import SummonSettings, settings
from summon.errors import FetchError

logger = logging.getLogger(__name__)

# Besides any 4xx, a HEAD answered with this status is retried as GET.
HEAD_NOT_IMPLEMENTED = 501


@dataclass(frozen=True)
class ResourceResult:
    """Outcome of the root fetch. `url` is the post-redirect URL."""

    url: str
    mimetype: str
    body: bytes


def build_client(
    config: SummonSettings = settings.SUMMON,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Creates the HTTP client shared by the root fetch and all candidate fetches.
    """
    return httpx.AsyncClient(
        headers={"User-Agent": config.USER_AGENT},
        timeout=config.REQUEST_TIMEOUT,
        follow_redirects=True,
        transport=transport,
    )


def parse_mimetype(content_type: Optional[str]) -> str:
    """'text/html; charset=utf-8' -> 'text/html'"""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def head_rejected(response: httpx.Response) -> bool:
    status = response.status_code
    return 400 <= status < 500 or status == HEAD_NOT_IMPLEMENTED


class ResourceFetcher:
    """
    Network IO for the top-level resource.
    A lightweight HEAD is tried first; servers that reject HEAD get one GET.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, url: str) -> ResourceResult:
        """
        Args:
            url (str): Absolute URL of the resource.

        Returns:
            ResourceResult: Final URL, normalized MIME type, and body
            (empty when HEAD succeeded).

        Raises:
            FetchError: Neither HEAD nor the GET fallback produced a usable response.
        """
        try:
            response = await self.client.head(url)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise FetchError(url, f"Network error: {e}") from e

        if head_rejected(response):
            logger.warning("[Fetcher] HEAD rejected with %s on %s, retrying with GET", response.status_code, url)
            response = await self.get(url)
        elif response.is_error:
            raise FetchError(url, f"HTTP {response.status_code}", status_code=response.status_code)

        result = ResourceResult(
            url=str(response.url),
            mimetype=parse_mimetype(response.headers.get("content-type")),
            body=response.content,
        )
        logger.info("[Fetcher] %s resolved to %s (%s)", url, result.url, result.mimetype or "no type")
        return result

    async def get(self, url: str) -> httpx.Response:
        """
        Full content-retrieving request. Also used to re-read empty HTML bodies.
        """
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise FetchError(url, f"Network error: {e}") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise FetchError(url, f"HTTP {status}", status_code=status) from e
        return response

    async def refetch(self, resource: ResourceResult) -> ResourceResult:
        """
        GETs an already fetched resource again, keeping its final URL and type.
        """
        response = await self.get(resource.url)
        return ResourceResult(url=resource.url, mimetype=resource.mimetype, body=response.content)
