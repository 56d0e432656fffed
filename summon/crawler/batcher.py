# summon/crawler/batcher.py
# Responsibility: Fetch and decode image candidates concurrently with bounded fan-out.

import asyncio
import logging
import tempfile
from typing import List, Optional, Sequence, Tuple, Union

import httpx

from summon.config.settings import SummonSettings, settings
from summon.crawler.decoder import decode_dimensions
from summon.errors import CandidateError, CandidateFetchFailure
from summon.indexer.candidate import ImageCandidate, build_candidate

logger = logging.getLogger(__name__)

# None marks a candidate dropped by the size gate
Outcome = Union[ImageCandidate, CandidateError, None]


def declared_length(response: httpx.Response) -> Optional[int]:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class CandidateFetchBatcher:
    """
    Fetches every candidate URL with at most TRANSFER_WIDTH requests in flight.

    Workers push outcomes onto a bounded queue (AUTO_FLUSH_AT deep); the
    aggregator drains it and flushes completed groups into the candidate
    list. A failing candidate is recorded and skipped, never raised.
    """

    def __init__(self, client: httpx.AsyncClient, config: SummonSettings = settings.SUMMON):
        self.client = client
        self.config = config
        self.transfer_width = max(config.TRANSFER_WIDTH, 1)
        self.auto_flush_at = max(config.AUTO_FLUSH_AT, 1)

    async def fetch_all(self, urls: Sequence[str]) -> List[ImageCandidate]:
        """
        Args:
            urls (Sequence[str]): Distinct absolute candidate URLs.

        Returns:
            List[ImageCandidate]: Candidates that passed the size and decode
            gates, in the order of `urls`.
        """
        urls = list(urls)
        if len(urls) > self.config.MAX_CANDIDATES:
            logger.warning(
                "[Batcher] %d candidates found, only the first %d are fetched",
                len(urls), self.config.MAX_CANDIDATES,
            )
            urls = urls[:self.config.MAX_CANDIDATES]
        if not urls:
            return []

        pending: asyncio.Queue = asyncio.Queue()
        for position, url in enumerate(urls):
            pending.put_nowait((position, url))
        completed: asyncio.Queue = asyncio.Queue(maxsize=self.auto_flush_at)

        workers = [
            asyncio.create_task(self._worker(pending, completed))
            for _ in range(min(self.transfer_width, len(urls)))
        ]
        try:
            return await self._drain(completed, expected=len(urls))
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    async def _worker(self, pending: asyncio.Queue, completed: asyncio.Queue) -> None:
        while True:
            try:
                position, url = pending.get_nowait()
            except asyncio.QueueEmpty:
                return
            outcome = await self._fetch_outcome(url)
            await completed.put((position, outcome))

    async def _drain(self, completed: asyncio.Queue, expected: int) -> List[ImageCandidate]:
        accepted: List[Tuple[int, ImageCandidate]] = []
        group: List[Tuple[int, Outcome]] = []
        received = 0

        while received < expected:
            group.append(await completed.get())
            received += 1
            if len(group) >= self.auto_flush_at or received == expected:
                accepted.extend(self._flush(group))
                group = []

        # Completion order varies from run to run; document order does not
        accepted.sort(key=lambda item: item[0])
        candidates = [candidate for _, candidate in accepted]

        logger.info("[Batcher] %d of %d candidates usable", len(candidates), expected)
        return candidates

    def _flush(self, group: List[Tuple[int, Outcome]]) -> List[Tuple[int, ImageCandidate]]:
        accepted: List[Tuple[int, ImageCandidate]] = []
        for position, outcome in group:
            if isinstance(outcome, ImageCandidate):
                accepted.append((position, outcome))
            elif isinstance(outcome, CandidateError):
                logger.warning("[Batcher] Skipped candidate: %s", outcome)
        logger.debug("[Batcher] Flushed %d results, %d accepted", len(group), len(accepted))
        return accepted

    async def _fetch_outcome(self, url: str) -> Outcome:
        try:
            return await self.fetch_candidate(url)
        except CandidateError as e:
            return e
        except Exception as e:
            # Anything else must not take the worker (and the whole batch) down
            logger.exception("[Batcher] Unexpected error on %s", url)
            return CandidateFetchFailure(url, f"Unexpected error: {e}")

    async def fetch_candidate(self, url: str) -> Optional[ImageCandidate]:
        """
        GETs one candidate and decodes its dimensions from a temporary file.

        The body is not downloaded when the declared Content-Length is below
        MIN_FILESIZE. The temporary file is closed on every path.

        Returns:
            Optional[ImageCandidate]: None when the size gate rejected it.

        Raises:
            CandidateFetchFailure: Network error or non-2xx status.
            DecodeFailure: Bytes are not a decodable image.
        """
        try:
            async with self.client.stream("GET", url) as response:
                if response.is_error:
                    raise CandidateFetchFailure(url, f"HTTP {response.status_code}")

                length = declared_length(response)
                if length is not None and length < self.config.MIN_FILESIZE:
                    logger.debug("[Batcher] %s below minimum filesize (%d bytes)", url, length)
                    return None

                final_url = str(response.url)
                with tempfile.TemporaryFile() as tmp:
                    written = 0
                    async for chunk in response.aiter_bytes():
                        written += tmp.write(chunk)
                    # Pillow parsing is blocking; keep it off the event loop
                    width, height = await asyncio.to_thread(decode_dimensions, tmp, url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CandidateFetchFailure(url, f"Request failed: {e}") from e

        logger.debug("[Batcher] %s decoded as %dx%d", final_url, width, height)
        return build_candidate(
            final_url,
            width,
            height,
            content_length=length if length is not None else written,
            config=self.config,
        )
