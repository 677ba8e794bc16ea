from typing import Callable, Dict, List

from ..domain.models import RankedEntry, RegistryEntry
from ..store.local import derive_repo_name


class CatalogRanker:
    """orders registry entries by popularity and marks local installs."""

    def __init__(self, is_installed: Callable[[str], bool]):
        self.is_installed = is_installed

    def rank(self, entries: List[RegistryEntry], stars: Dict[str, int]) -> List[RankedEntry]:
        """
        sort entries by star count, most popular first.

        entries with equal stars keep their registry order, and a url with no
        known star count ranks as 0.
        """
        scored = [(entry, stars.get(entry.source_url, 0)) for entry in entries]
        # sorted() is stable so ties stay in registry order
        scored = sorted(scored, key=lambda pair: pair[1], reverse=True)

        ranked = []
        for position, (entry, count) in enumerate(scored, start=1):
            ranked.append(RankedEntry(
                rank=position,
                type=entry.type,
                source_url=entry.source_url,
                stars=count,
                installed=self.is_installed(derive_repo_name(entry.source_url)),
            ))
        return ranked
