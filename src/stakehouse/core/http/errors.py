from __future__ import annotations


class StakehouseHTTPError(RuntimeError):
    """Base error for shared HTTP client operations; ``url`` has its query string removed."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class StakehouseHTTPStatusError(StakehouseHTTPError):
    def __init__(self, message: str, status_code: int | None = None, *, url: str | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class StakehouseHTTPNetworkError(StakehouseHTTPError):
    """Raised when the RPC or Horizon endpoint cannot be reached within the retry budget."""

    def __init__(self, message: str, *, url: str | None = None, attempts: int = 1) -> None:
        super().__init__(message, url=url)
        self.attempts = attempts
