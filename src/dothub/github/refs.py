"""normalize source urls into GitHub owner/repo pairs."""

from typing import List, Optional
from urllib.parse import urlsplit

from ..domain.models import GithubRef

GITHUB_HOST = "github.com"
SSH_PREFIX = "git@github.com:"


def _strip_repo_suffix(repo: str) -> str:
    # only one suffix is removed, a trailing dot takes precedence over .git
    if repo.endswith("."):
        return repo[:-1]
    if repo.endswith(".git"):
        return repo[:-4]
    return repo


def _ref_from_segments(segments: List[str]) -> Optional[GithubRef]:
    segments = [s for s in segments if s]
    if not segments:
        return None
    owner = segments[0]
    if len(segments) >= 2:
        return GithubRef(owner=owner, repo=_strip_repo_suffix(segments[1]))
    # owner-only url, guess the repo shares the owner's name
    return GithubRef(owner=owner, repo=owner)


def resolve_github_ref(url: str) -> Optional[GithubRef]:
    """
    resolve a source url to its GitHub owner and repo.

    accepts https style urls (https://github.com/owner/repo[.git]) and the
    ssh shorthand (git@github.com:owner/repo[.git]). returns None for urls
    that are not hosted on github.com or have no owner.
    """
    lower = url.lower()
    if GITHUB_HOST not in lower:
        return None

    try:
        parsed = urlsplit(url)
        hostname = parsed.hostname
    except ValueError:
        # malformed netloc, e.g. an unbalanced ipv6 bracket
        return None
    if parsed.scheme and parsed.netloc:
        if hostname != GITHUB_HOST:
            return None
        return _ref_from_segments(parsed.path.split("/"))

    if lower.startswith(SSH_PREFIX):
        return _ref_from_segments(lower[len(SSH_PREFIX):].split("/"))

    return None
