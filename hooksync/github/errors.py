"""GitHub API errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        method: str | None = None,
        url: str | None = None,
    ) -> None:
        """Initialise with a message and the failed request details."""
        self.status_code = status_code
        self.method = method
        self.url = url
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, method: str, url: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"GitHub {method} {url}: HTTP {status_code}",
            status_code=status_code,
            method=method,
            url=url,
        )


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub responses do not match the expected shape."""

    @classmethod
    def invalid(cls, what: str, detail: object) -> GitHubResponseShapeError:
        """Return an error for an undecodable response body."""
        return cls(f"GitHub response for {what} has an unexpected shape: {detail}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def missing_token(cls) -> GitHubConfigError:
        """Return an error when no GitHub token is configured."""
        return cls("GITHUB_ACCESS_TOKEN is required for the GitHub API")

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")
