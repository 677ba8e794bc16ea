import json
import logging
from typing import List, Optional

import httpx

from ..config import Settings
from ..domain.errors import GithubError
from ..domain.models import GithubRef

logger = logging.getLogger(__name__)


def alias_for(index: int) -> str:
    """alias used for the repository at `index` within one bulk query."""
    return f"r{index}"


def _quote(value: str) -> str:
    return value.replace('"', '\\"')


def build_stars_query(refs: List[GithubRef]) -> str:
    """build one GraphQL query asking for the star count of every ref."""
    parts = ["query {"]
    for i, ref in enumerate(refs):
        parts.append(
            f'{alias_for(i)}: repository(owner:"{_quote(ref.owner)}", name:"{_quote(ref.repo)}") {{ stargazerCount }}'
        )
    parts.append("}")
    return " ".join(parts)


def _as_count(value) -> int:
    # bools are ints in python but never a star count
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


class GitHubClient:
    """talks to the GitHub REST and GraphQL apis to read star counts."""

    def __init__(self, settings: Settings, token: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.token = token
        self.client = client or httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.http_timeout,
        )

    def repo_stars(self, ref: GithubRef) -> int:
        """
        read the star count of one repository from the REST api.

        raises:
            GithubError: on transport failure, non-2xx status or unexpected body
        """
        url = f"{self.settings.github_api_url.rstrip('/')}/repos/{ref.owner}/{ref.repo}"
        try:
            response = self.client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise GithubError(f"GET {url} returned {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise GithubError(f"GET {url} failed: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GithubError(f"GET {url} returned invalid json") from e

        if not isinstance(data, dict):
            raise GithubError(f"GET {url} returned unexpected json")
        return _as_count(data.get("stargazers_count", 0))

    def query_stars(self, refs: List[GithubRef]) -> List[int]:
        """
        read star counts for many repositories in a single GraphQL request.

        returns:
            star counts in the same order as `refs`. repositories missing from
            the response (renamed, deleted, private) count as 0.

        raises:
            GithubError: on transport failure, non-2xx status or undecodable body
        """
        if not refs:
            return []

        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        url = self.settings.github_graphql_url
        try:
            response = self.client.post(url, json={"query": build_stars_query(refs)}, headers=headers)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise GithubError(f"graphql status {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise GithubError(f"graphql request failed: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GithubError("graphql response is not valid json") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise GithubError("graphql response has no data object")

        if payload.get("errors"):
            logger.debug(f"graphql reported {len(payload['errors'])} error(s), missing repos count as 0")

        counts = []
        for i in range(len(refs)):
            node = data.get(alias_for(i))
            counts.append(_as_count(node.get("stargazerCount")) if isinstance(node, dict) else 0)
        return counts
