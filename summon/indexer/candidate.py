# summon/indexer/candidate.py
# Responsibility: Geometry of a fetched image and the aspect-band check used for ranking.

from dataclasses import dataclass, field
from typing import Optional

from summon.config.settings import SummonSettings, settings


@dataclass(frozen=True)
class ImageCandidate:
    """
    A candidate image that was fetched and decoded to positive dimensions.
    ratio, area and in_aspect_band are derived at construction.
    """

    source_url: str
    content_length: int
    width: int
    height: int
    min_ratio: float = field(default=settings.SUMMON.MIN_RATIO, repr=False)
    max_ratio: float = field(default=settings.SUMMON.MAX_RATIO, repr=False)

    @property
    def ratio(self) -> float:
        return self.width / self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def in_aspect_band(self) -> bool:
        # Exclusive on both ends
        return self.min_ratio < self.ratio < self.max_ratio


def build_candidate(
    url: str,
    width: int,
    height: int,
    content_length: Optional[int] = None,
    config: SummonSettings = settings.SUMMON,
) -> Optional[ImageCandidate]:
    """
    Validates decoded dimensions and wraps them in an ImageCandidate.

    Args:
        url (str): Final URL of the image response.
        width (int): Decoded pixel width.
        height (int): Decoded pixel height.
        content_length (Optional[int]): Declared Content-Length, if any.
        config (SummonSettings): Supplies the aspect band.

    Returns:
        Optional[ImageCandidate]: None for dimensionless images.
    """
    if width <= 0 or height <= 0:
        return None

    return ImageCandidate(
        source_url=url,
        content_length=max(content_length or 0, 0),
        width=width,
        height=height,
        min_ratio=config.MIN_RATIO,
        max_ratio=config.MAX_RATIO,
    )
