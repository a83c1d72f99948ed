"""Exception hierarchy for Keyword Journey."""


class KeywordJourneyError(Exception):
    """Base class for all Keyword Journey errors."""


class ConfigurationError(KeywordJourneyError):
    """Raised when a required credential or setting is missing."""


class BatchRequestError(KeywordJourneyError):
    """Raised when the classification backend answers a batch with a non-2xx status."""

    def __init__(self, batch_index: int, status_code: int, reason: str = ""):
        self.batch_index = batch_index
        self.status_code = status_code
        self.reason = reason
        super().__init__(
            f"Batch {batch_index + 1} failed: {status_code} {reason}".rstrip()
        )


class NaverAPIError(KeywordJourneyError):
    """Raised when the Naver Search Ad API returns an error or invalid JSON."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidInsightTypeError(KeywordJourneyError, ValueError):
    """Raised for an insight type outside marketing/budget/landing/da/sa."""
