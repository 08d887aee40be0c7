"""GitHub REST client errors."""

from __future__ import annotations

_UNAUTHORIZED = 401


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_credential_failure(self) -> bool:
        """Return True when GitHub rejected the user's token."""
        return self.status_code == _UNAUTHORIZED

    @classmethod
    def http_error(cls, status_code: int, url: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def transport(cls, exc: Exception) -> GitHubAPIError:
        """Return an error for connection or timeout failures."""
        return cls(f"GitHub request failed: {exc}")

    @classmethod
    def invalid_payload(cls, detail: str) -> GitHubAPIError:
        """Return an error for responses that do not match the expected shape."""
        return cls(f"GitHub response could not be decoded: {detail}")


class GitHubFileNotFoundError(GitHubAPIError):
    """Raised when a requested file does not exist at the given branch."""

    def __init__(self, fullname: str, branch: str, path: str) -> None:
        """Record the missing file location."""
        self.fullname = fullname
        self.branch = branch
        self.path = path
        super().__init__(
            f"File {path!r} not found in {fullname} at {branch!r}", status_code=404
        )


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> GitHubConfigError:
        """Return an error when the provided token is empty."""
        return cls("GitHub token must be non-empty")

    @classmethod
    def invalid_timeout(cls, raw: str) -> GitHubConfigError:
        """Return an error for a non-numeric or non-positive timeout."""
        return cls(f"DEPWATCH_GITHUB_TIMEOUT must be a positive number, got: {raw!r}")
