"""Errors raised while deriving hook identities."""

from __future__ import annotations


class InvalidRepositoryURIError(ValueError):
    """Raised when a source URI does not name a GitHub repository."""

    def __init__(self, uri: str) -> None:
        """Initialise with the offending URI."""
        self.uri = uri
        super().__init__(f"Failed to parse owner and name from URI {uri}")
