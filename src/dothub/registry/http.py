import logging
from typing import Optional

import httpx

from .client import RegistryClient
from ..config import Settings
from ..domain.errors import FetchError

logger = logging.getLogger(__name__)


class HttpRegistryClient(RegistryClient):
    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.http_timeout,
            follow_redirects=True,
        )

    def fetch(self, url: Optional[str] = None) -> str:
        """
        download the hub file with a single GET.

        args:
            url: hub file location, defaults to the configured hub url

        raises:
            FetchError: on transport failure, non-2xx status or undecodable body
        """
        url = url or self.settings.hub_url
        logger.debug(f"fetching hub file from {url}")

        try:
            response = self.client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            raise FetchError(url, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(url, str(e) or e.__class__.__name__) from e
        except UnicodeDecodeError as e:
            raise FetchError(url, "response body is not text") from e
