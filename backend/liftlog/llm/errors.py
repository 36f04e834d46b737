from __future__ import annotations

import re


class ModelError(Exception):
    """Base for failures talking to the conversational model."""


class RetryableModelError(ModelError):
    """Transient failure; the initial send may be retried with backoff."""


class RateLimitedError(RetryableModelError):
    def __init__(self, message: str = "Rate limited. Please try again in a moment.", retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ModelTimeoutError(RetryableModelError):
    pass


class MalformedResponseError(ModelError):
    """The backend answered, but the answer could not be decoded."""


class ServiceUnavailableError(ModelError):
    def __init__(self, message: str = "Service temporarily unavailable. Please try again later."):
        super().__init__(message)


class ModelConfigurationError(ModelError):
    """Missing or invalid credentials; raised at startup, never per turn."""


_RATE_LIMIT_RE = re.compile(r"\b429\b|\brate[ _-]?limit|\bquota\b|resource exhausted|too many requests")
_TIMEOUT_MARKERS = ("timeout", "timed out")


def classify_error(exc: Exception) -> ModelError:
    """Fold an arbitrary backend exception into the ModelError hierarchy."""
    if isinstance(exc, ModelError):
        return exc
    if isinstance(exc, TimeoutError):
        return ModelTimeoutError(str(exc) or "model call timed out")
    message = str(exc).lower()
    if _RATE_LIMIT_RE.search(message):
        return RateLimitedError(str(exc))
    if any(m in message for m in _TIMEOUT_MARKERS):
        return ModelTimeoutError(str(exc))
    return ModelError(str(exc) or exc.__class__.__name__)
