# summon/crawler/parser.py
# Responsibility: Discover <img> candidates in an HTML document as absolute, de-duplicated URLs.

import hashlib
from abc import ABC, abstractmethod
from typing import List, Set, Union

from bs4 import BeautifulSoup, Tag

from summon.crawler.url_resolver import resolve_url


IGNORED_SCHEMES = ("data:", "javascript:", "about:")


# -------------------------------
# Base Extractor
# -------------------------------
class BaseImageExtractor(ABC):
    @abstractmethod
    def extract(self, base_url: str, content: Union[bytes, str]) -> List[str]:
        pass


# -------------------------------
# Default HTML Extractor
# -------------------------------
class HtmlImageExtractor(BaseImageExtractor):
    """
    Tolerant <img> discovery using BeautifulSoup.
    - Every src is resolved against the document's final URL
    - Duplicates are dropped by URL hash, first occurrence wins
    """

    def extract(self, base_url: str, content: Union[bytes, str]) -> List[str]:
        # html.parser never raises on broken markup; it recovers what it can
        soup = BeautifulSoup(content, "html.parser")

        images: List[str] = []
        seen_hashes: Set[str] = set()

        for img in soup.find_all("img"):
            if not isinstance(img, Tag):
                continue

            src = img.get("src")
            if isinstance(src, list):
                src = " ".join(src)
            if not src or not src.strip():
                continue
            if src.strip().lower().startswith(IGNORED_SCHEMES):
                continue

            abs_url = resolve_url(base_url, src)

            url_hash = self._generate_url_hash(abs_url)
            if url_hash in seen_hashes:
                continue
            seen_hashes.add(url_hash)
            images.append(abs_url)

        return images

    def _generate_url_hash(self, image_url: str) -> str:
        return hashlib.md5(image_url.encode("utf-8")).hexdigest()


# -------------------------------
# Singleton Extractor
# -------------------------------
ImageExtractor = HtmlImageExtractor()
