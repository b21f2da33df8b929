"""OpenShift API and configuration errors."""

from __future__ import annotations

from hooksync.cache.errors import ListWatchError


class OpenShiftAPIError(ListWatchError):
    """Raised when the OpenShift API returns an error or an unreadable body."""

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
    def http_error(cls, status_code: int, method: str, url: str) -> OpenShiftAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(
            f"OpenShift {method} {url}: HTTP {status_code}",
            status_code=status_code,
            method=method,
            url=url,
        )

    @classmethod
    def invalid_payload(cls, what: str, detail: object) -> OpenShiftAPIError:
        """Return an error for a body that does not decode."""
        return cls(f"OpenShift response for {what} has an unexpected shape: {detail}")

    @classmethod
    def watch_error(cls, code: int, message: str) -> OpenShiftAPIError:
        """Return an error for an ``ERROR`` event on a watch stream."""
        return cls(f"OpenShift watch error {code}: {message}", status_code=code)


class OpenShiftConfigError(RuntimeError):
    """Raised when no usable OpenShift client configuration is found."""

    @classmethod
    def missing_server(cls) -> OpenShiftConfigError:
        """Return an error when neither a server nor an in-cluster service is set."""
        return cls(
            "No OpenShift server configured. Please provide one either with the "
            "--openshift-server flag or the OPENSHIFT_SERVER environment variable."
        )

    @classmethod
    def unreadable_token(cls, path: str, detail: object) -> OpenShiftConfigError:
        """Return an error when the service account token cannot be read."""
        return cls(f"Failed to read the service account token {path}: {detail}")


class WebhookURLError(ValueError):
    """Raised when a webhook URL cannot be minted for a build trigger."""

    @classmethod
    def missing_secret(cls, key: str) -> WebhookURLError:
        """Return an error for a GitHub trigger without a secret."""
        return cls(f"GitHub trigger of BuildConfig {key} has no secret")
