"""test suite for PopularityService."""
import json
import re
import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dothub.config import Settings
from dothub.domain.errors import GithubError
from dothub.domain.models import GithubRef
from dothub.github.client import GitHubClient
from dothub.services.popularity import PopularityService, chunked

ALIAS_RE = re.compile(r'(r\d+): repository\(owner:"([^"]+)", name:"([^"]+)"\)')
REST_RE = re.compile(r"/repos/([^/]+)/([^/]+)$")


class FakeGitHub:
    """mock transport answering both GitHub endpoints from a star table."""

    def __init__(self, stars, graphql_status=200, fail_graphql_on_call=None, rest_down=False):
        self.stars = stars
        self.graphql_status = graphql_status
        self.fail_graphql_on_call = fail_graphql_on_call
        self.rest_down = rest_down
        self.graphql_chunks = []
        self.rest_calls = []

    def __call__(self, request):
        if request.url.path == "/graphql":
            return self._graphql(request)
        return self._rest(request)

    def _graphql(self, request):
        matches = ALIAS_RE.findall(json.loads(request.content)["query"])
        self.graphql_chunks.append(len(matches))
        if self.fail_graphql_on_call == len(self.graphql_chunks) or self.graphql_status != 200:
            return httpx.Response(self.graphql_status if self.graphql_status != 200 else 502)

        data = {}
        # answer in reverse so matching can't rely on key order
        for alias, owner, repo in reversed(matches):
            key = f"{owner}/{repo}"
            data[alias] = {"stargazerCount": self.stars[key]} if key in self.stars else None
        return httpx.Response(200, json={"data": data})

    def _rest(self, request):
        self.rest_calls.append(request.url.path)
        if self.rest_down:
            raise httpx.ConnectError("network unreachable", request=request)
        owner, repo = REST_RE.search(request.url.path).groups()
        key = f"{owner}/{repo}"
        if key not in self.stars:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"stargazers_count": self.stars[key]})


def make_service(fake, token=None, **settings_overrides):
    settings = Settings(**settings_overrides)
    http = httpx.Client(transport=httpx.MockTransport(fake))
    return PopularityService(settings, GitHubClient(settings, token=token, client=http))


class TestChunked:
    def test_chunk_sizes(self):
        assert [len(c) for c in chunked(list(range(120)), 50)] == [50, 50, 20]

    def test_empty(self):
        assert list(chunked([], 50)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestNoCredential:
    def test_uses_rest_for_every_url(self):
        fake = FakeGitHub({"a/b": 42, "c/d": 5})
        service = make_service(fake)

        result = service.lookup(["https://github.com/a/b", "https://github.com/c/d"])

        assert result.stars == {"https://github.com/a/b": 42, "https://github.com/c/d": 5}
        assert result.bulk_attempted is False
        assert result.bulk_failed is False
        assert fake.graphql_chunks == []
        assert sorted(fake.rest_calls) == ["/repos/a/b", "/repos/c/d"]

    def test_unresolvable_and_failing_urls_are_zero(self):
        fake = FakeGitHub({"a/b": 42})
        service = make_service(fake)

        result = service.lookup([
            "https://github.com/a/b",
            "https://gitlab.com/e/f",
            "https://github.com/missing/repo",
        ])

        assert result.stars == {
            "https://github.com/a/b": 42,
            "https://gitlab.com/e/f": 0,
            "https://github.com/missing/repo": 0,
        }
        # gitlab never reaches the api
        assert "/repos/e/f" not in fake.rest_calls

    def test_sequential_when_single_worker(self):
        fake = FakeGitHub({"a/b": 1, "c/d": 2})
        service = make_service(fake, fallback_workers=1)
        result = service.lookup(["https://github.com/a/b", "https://github.com/c/d"])
        assert fake.rest_calls == ["/repos/a/b", "/repos/c/d"]
        assert result.stars["https://github.com/c/d"] == 2

    def test_duplicate_urls_looked_up_once(self):
        fake = FakeGitHub({"a/b": 9})
        service = make_service(fake)
        result = service.lookup(["https://github.com/a/b", "https://github.com/a/b"])
        assert result.stars == {"https://github.com/a/b": 9}
        assert fake.rest_calls == ["/repos/a/b"]

    def test_malformed_url_is_zero(self):
        fake = FakeGitHub({"a/b": 42})
        service = make_service(fake)

        result = service.lookup(["https://github.com/a/b", "http://[github.com/x/y"])

        assert result.stars == {"https://github.com/a/b": 42, "http://[github.com/x/y": 0}
        assert fake.rest_calls == ["/repos/a/b"]


class TestBulkPath:
    def test_chunks_of_fifty_matched_by_alias(self):
        stars = {f"owner{i}/repo{i}": i * 10 for i in range(120)}
        fake = FakeGitHub(stars)
        service = make_service(fake, token="t")
        urls = [f"https://github.com/owner{i}/repo{i}" for i in range(120)]

        result = service.lookup(urls, credential="t")

        assert fake.graphql_chunks == [50, 50, 20]
        assert fake.rest_calls == []
        assert result.bulk_attempted is True
        assert result.bulk_failed is False
        for i, url in enumerate(urls):
            assert result.stars[url] == i * 10

    def test_unresolvable_urls_excluded(self):
        fake = FakeGitHub({"a/b": 42})
        service = make_service(fake, token="t")

        result = service.lookup(["https://github.com/a/b", "https://gitlab.com/e/f"], credential="t")

        assert result.stars == {"https://github.com/a/b": 42}
        assert fake.graphql_chunks == [1]
        assert fake.rest_calls == []

    def test_missing_repository_is_zero_not_failure(self):
        fake = FakeGitHub({"a/b": 42})
        service = make_service(fake, token="t")

        result = service.lookup(["https://github.com/a/b", "https://github.com/gone/gone"], credential="t")

        assert result.stars == {"https://github.com/a/b": 42, "https://github.com/gone/gone": 0}
        assert result.bulk_failed is False

    def test_owner_only_url_uses_same_ref_in_both_paths(self):
        fake = FakeGitHub({"acme/acme": 3})
        bulk = make_service(fake, token="t").lookup(["https://github.com/acme"], credential="t")
        rest = make_service(fake).lookup(["https://github.com/acme"])
        assert bulk.stars == rest.stars == {"https://github.com/acme": 3}

    def test_no_resolvable_urls_makes_no_request(self):
        fake = FakeGitHub({})
        result = make_service(fake, token="t").lookup(["https://gitlab.com/e/f"], credential="t")
        assert result.stars == {}
        assert fake.graphql_chunks == []

    def test_malformed_url_excluded(self):
        fake = FakeGitHub({"a/b": 42})
        service = make_service(fake, token="t")

        result = service.lookup(["https://github.com/a/b", "http://[github.com/x/y"], credential="t")

        assert result.stars == {"https://github.com/a/b": 42}
        assert result.bulk_failed is False
        assert fake.graphql_chunks == [1]


class TestFallback:
    def test_failed_chunk_discards_bulk_results(self):
        stars = {f"o{i}/r{i}": i + 1 for i in range(60)}
        fake = FakeGitHub(stars, fail_graphql_on_call=2)
        service = make_service(fake, token="t")
        urls = [f"https://github.com/o{i}/r{i}" for i in range(60)]

        result = service.lookup(urls, credential="t")

        assert fake.graphql_chunks == [50, 10]
        assert result.bulk_failed is True
        assert len(fake.rest_calls) == 60
        assert result.stars == {url: i + 1 for i, url in enumerate(urls)}

    def test_bad_credentials_fall_back(self):
        fake = FakeGitHub({"a/b": 42}, graphql_status=401)
        service = make_service(fake, token="revoked")

        result = service.lookup(["https://github.com/a/b", "https://gitlab.com/e/f"], credential="revoked")

        assert result.bulk_failed is True
        assert result.stars == {"https://github.com/a/b": 42, "https://gitlab.com/e/f": 0}

    def test_never_raises_when_network_is_down(self):
        def handler(request):
            raise httpx.ConnectError("network unreachable", request=request)

        settings = Settings()
        service = PopularityService(
            settings,
            GitHubClient(settings, token="t", client=httpx.Client(transport=httpx.MockTransport(handler))),
        )
        urls = ["https://github.com/a/b", "git@github.com:c/d.git", "https://gitlab.com/e/f"]

        result = service.lookup(urls, credential="t")

        assert result.bulk_failed is True
        assert result.stars == {url: 0 for url in urls}

    def test_github_stars_rejects_unresolvable(self):
        service = PopularityService(Settings(), Mock(spec=GitHubClient))
        with pytest.raises(GithubError):
            service.github_stars("https://gitlab.com/e/f")

    def test_github_stars_delegates_resolved_ref(self):
        github_client = Mock(spec=GitHubClient)
        github_client.repo_stars.return_value = 11
        service = PopularityService(Settings(), github_client)

        assert service.github_stars("git@github.com:acme/tool.git") == 11
        github_client.repo_stars.assert_called_once_with(GithubRef(owner="acme", repo="tool"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
