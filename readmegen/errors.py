"""
Error taxonomy shared by the collector, the synthesizer and the API.

Every error carries the HTTP status the endpoint answers with. Only
problems with the caller's input map to 400; anything that goes wrong
downstream is reported as a 500 carrying the error's message.
"""

from __future__ import annotations


class ReadmeGenError(Exception):
    """Base for all errors surfaced by the README generator."""

    status_code: int = 500


class InvalidInput(ReadmeGenError):
    """The request body is missing a required field."""

    status_code = 400


class InvalidReference(ReadmeGenError):
    """The repository URL does not look like github.com/owner/name."""

    status_code = 400


class NotFound(ReadmeGenError):
    """GitHub reports that the repository does not exist (or is private).

    Surfaced as a 500 like every other downstream failure.
    """


class ConfigurationError(ReadmeGenError):
    """A required credential is not configured."""


class NoModelAvailable(ReadmeGenError):
    """The generation provider lists no model supporting generateContent."""


class ProviderError(ReadmeGenError):
    """An upstream call failed; ``body`` keeps the raw response for diagnostics."""

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class RateLimitError(ProviderError):
    """403/429 from GitHub with the rate-limit budget exhausted."""

    def __init__(
        self, message: str, reset_timestamp: int | None = None, body: str | None = None,
    ):
        super().__init__(message, body=body)
        self.reset_timestamp = reset_timestamp
