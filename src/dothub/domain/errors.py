class DothubError(Exception):
    """base class for exceptions in dothub."""
    pass

class FetchError(DothubError):
    """raised when the hub file cannot be downloaded."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")

class ParseError(DothubError):
    """raised when the hub file is not a mapping of type to url(s)."""
    pass

class GithubError(DothubError):
    """raised when a GitHub star lookup cannot be completed."""
    pass

class StoreError(DothubError):
    """raised when an operation on the local repo store fails."""
    pass
