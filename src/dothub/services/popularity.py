import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..config import Settings
from ..domain.errors import DothubError, GithubError
from ..domain.models import GithubRef, PopularityResult
from ..github.client import GitHubClient
from ..github.refs import resolve_github_ref

logger = logging.getLogger(__name__)


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    """yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class PopularityService:
    """resolves GitHub star counts for source urls, best effort."""

    def __init__(self, settings: Settings, github_client: GitHubClient):
        self.settings = settings
        self.github_client = github_client

    def lookup(self, urls: List[str], credential: Optional[str] = None) -> PopularityResult:
        """
        look up star counts for every url.

        with a credential the bulk GraphQL path is tried first; without one,
        or when any bulk chunk fails, every url is looked up individually over
        REST. never raises: failed lookups count as 0.
        """
        if not credential:
            return PopularityResult(stars=self._lookup_each(urls))

        try:
            stars = self._lookup_bulk(urls)
            return PopularityResult(stars=stars, bulk_attempted=True)
        except GithubError as e:
            logger.info(f"bulk star lookup failed, falling back to REST: {e}")
            return PopularityResult(
                stars=self._lookup_each(urls),
                bulk_attempted=True,
                bulk_failed=True,
            )

    def github_stars(self, url: str) -> int:
        """
        look up a single url over REST.

        raises:
            GithubError: if the url is not a GitHub repository or the lookup fails
        """
        ref = resolve_github_ref(url)
        if ref is None:
            raise GithubError(f"not a github repository: {url}")
        return self.github_client.repo_stars(ref)

    def _lookup_bulk(self, urls: List[str]) -> Dict[str, int]:
        resolved: List[Tuple[str, GithubRef]] = []
        for url in urls:
            ref = resolve_github_ref(url)
            if ref is not None:
                resolved.append((url, ref))

        stars = {}
        for chunk in chunked(resolved, self.settings.batch_size):
            counts = self.github_client.query_stars([ref for _, ref in chunk])
            for (url, _), count in zip(chunk, counts):
                stars[url] = count
        logger.debug(f"bulk lookup resolved {len(stars)} of {len(urls)} urls")
        return stars

    def _safe_stars(self, url: str) -> int:
        try:
            return self.github_stars(url)
        except DothubError as e:
            logger.debug(f"no star count for {url}: {e}")
            return 0

    def _lookup_each(self, urls: List[str]) -> Dict[str, int]:
        unique = list(dict.fromkeys(urls))
        workers = max(1, min(self.settings.fallback_workers, len(unique)))
        if workers == 1:
            return {url: self._safe_stars(url) for url in unique}

        with ThreadPoolExecutor(max_workers=workers) as pool:
            counts = list(pool.map(self._safe_stars, unique))
        return dict(zip(unique, counts))
