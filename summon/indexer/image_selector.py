# summon/indexer/image_selector.py
# Responsibility: Ranks validated candidates and picks a bounded list of thumbnails.

from typing import Iterable, List, Optional, Sequence, Tuple

from summon.config.settings import SummonSettings, settings
from summon.indexer.candidate import ImageCandidate


class TierTable:
    """
    Ordered (area threshold, quota) pairs, most selective first.

    Invariants checked on construction:
    - thresholds strictly decreasing
    - quotas non-decreasing
    - the last quota equals the global image cap
    """

    def __init__(self, tiers: Iterable[Tuple[int, int]], max_images: int):
        self.tiers: Tuple[Tuple[int, int], ...] = tuple((int(a), int(q)) for a, q in tiers)
        self.max_images = max_images
        self._validate()

    @classmethod
    def from_settings(cls, config: SummonSettings = settings.SUMMON) -> "TierTable":
        return cls(config.PREFERRED_TIERS, config.MAX_IMAGES)

    def _validate(self) -> None:
        if not self.tiers:
            raise ValueError("Tier table must not be empty")

        for (area, quota), (next_area, next_quota) in zip(self.tiers, self.tiers[1:]):
            if next_area >= area:
                raise ValueError(f"Tier thresholds must strictly decrease ({area} -> {next_area})")
            if next_quota < quota:
                raise ValueError(f"Tier quotas must not decrease ({quota} -> {next_quota})")

        final_quota = self.tiers[-1][1]
        if final_quota != self.max_images:
            raise ValueError(f"Final tier quota {final_quota} must equal MAX_IMAGES {self.max_images}")

    def match(self, area: int) -> Optional[Tuple[int, int]]:
        """First tier whose threshold the area meets, or None."""
        for tier in self.tiers:
            if area >= tier[0]:
                return tier
        return None


class ImageSelector:
    """
    Encapsulates logic for selecting representative thumbnails.
    Output depends only on the complete candidate set, not on arrival order.
    """

    def __init__(self, tier_table: Optional[TierTable] = None):
        self.tier_table = tier_table or TierTable.from_settings()

    @staticmethod
    def rank(candidates: Sequence[ImageCandidate]) -> List[ImageCandidate]:
        """
        Sorts candidates best-first.
        1. In the aspect band beats out of band, whatever the area
        2. Larger area first
        Equal keys keep their relative order (sorted() is stable).
        """
        return sorted(candidates, key=lambda c: (
            0 if c.in_aspect_band else 1,
            -c.area,
        ))

    def select(self, candidates: Sequence[ImageCandidate]) -> List[str]:
        """
        Single tiered pass over the ranked candidates.

        Each candidate is counted against the first tier it qualifies for.
        As soon as the running count reaches that tier's quota the whole
        pass stops, so a few large images end the search early while small
        ones may fill up to the final quota.

        Args:
            candidates (Sequence[ImageCandidate]): Validated candidates, any order.

        Returns:
            List[str]: Thumbnail URLs, best first.
        """
        selected: List[str] = []
        count = 0

        for candidate in self.rank(candidates):
            tier = self.tier_table.match(candidate.area)
            if tier is None:
                continue

            count += 1
            selected.append(candidate.source_url)
            if count >= tier[1]:
                break

        return selected
