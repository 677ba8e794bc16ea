import logging
from typing import Iterable, Optional

from ..config import Settings
from ..domain.models import CatalogReport
from ..ranking.ranker import CatalogRanker
from ..registry.client import RegistryClient
from ..registry.parser import flatten, normalize_filters, parse_registry
from ..store.local import LocalStore
from ..ui.progress import ProgressManager
from .popularity import PopularityService

logger = logging.getLogger(__name__)


class CatalogService:
    """builds the stars-ranked catalog of hub repositories."""

    def __init__(
        self,
        settings: Settings,
        registry_client: RegistryClient,
        popularity_service: PopularityService,
        store: LocalStore,
        progress_manager: Optional[ProgressManager] = None,
    ):
        self.settings = settings
        self.registry_client = registry_client
        self.popularity_service = popularity_service
        self.store = store
        self.progress_manager = progress_manager

    def build(
        self,
        types: Optional[Iterable[str]] = None,
        url: Optional[str] = None,
        credential: Optional[str] = None,
    ) -> CatalogReport:
        """
        fetch the hub file and rank its entries by GitHub stars.

        args:
            types: optional type filters, matched case-insensitively
            url: hub file override, defaults to the configured hub url
            credential: GitHub token enabling the bulk GraphQL lookup

        raises:
            FetchError: if the hub file can't be downloaded
            ParseError: if the hub file is malformed
        """
        text = self.registry_client.fetch(url or self.settings.hub_url)
        registry = parse_registry(text)
        entries = flatten(registry, normalize_filters(types or []))
        logger.debug(f"{len(entries)} hub entries after filtering")

        urls = [entry.source_url for entry in entries]
        if self.progress_manager:
            with self.progress_manager.spinner("Downloading stars from github"):
                result = self.popularity_service.lookup(urls, credential)
        else:
            result = self.popularity_service.lookup(urls, credential)

        ranker = CatalogRanker(self.store.exists)
        return CatalogReport(
            rows=ranker.rank(entries, result.stars),
            credential_missing=not credential,
            bulk_failed=result.bulk_failed,
        )
