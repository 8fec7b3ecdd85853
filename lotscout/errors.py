"""
Failure kinds a crawl can terminate with.

Every one of these is terminal for the invocation. Callers that want a retry
re-run the whole crawl themselves.
"""


class CrawlError(Exception):
    """Base class for crawl failures surfaced to callers."""

    kind = "CrawlError"
    reason = None

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.message = message
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class Blocked(CrawlError):
    """The page served a bot-verification or access-denied interstitial."""
    kind = "Blocked"


class NoItemsFound(CrawlError):
    """No listing items attached after the first wait and the fallback poll."""
    kind = "NoItemsFound"


class NavigationFailure(CrawlError):
    """The target page never reached a usable load state."""
    kind = "NavigationFailure"


class UnexpectedFailure(CrawlError):
    kind = "UnexpectedFailure"


class CrawlTimeout(UnexpectedFailure):
    """
    The request-level time bound elapsed before the crawl finished.

    Reported under the UnexpectedFailure kind; reason tells it apart.
    """
    reason = "timeout"
