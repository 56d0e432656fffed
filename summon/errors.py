# summon/errors.py
# Responsibility: Exception hierarchy shared by the fetch, dispatch and candidate stages.

from typing import Optional


class SummonError(Exception):
    """Base class for every error raised by the thumbnail pipeline."""


class FetchError(SummonError):
    """The root resource could not be retrieved by HEAD or GET."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class UnsupportedTypeError(SummonError):
    """No handler is registered for a classified resource type."""

    def __init__(self, resource_type: str):
        super().__init__(f"Unable to handle type [{resource_type}]")
        self.resource_type = resource_type


class EmptySourceError(SummonError):
    """An HTML resource had an empty body even after a full GET."""

    def __init__(self, url: str):
        super().__init__(f"Could not read remote source ({url})")
        self.url = url


class CandidateError(SummonError):
    """
    A single image candidate was rejected.
    Never escapes the batcher; the candidate is just left out of ranking.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class CandidateFetchFailure(CandidateError):
    pass


class DecodeFailure(CandidateError):
    pass
