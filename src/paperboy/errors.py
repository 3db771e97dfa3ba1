"""Error types raised by the content API client."""

from __future__ import annotations


class NetworkError(RuntimeError):
    """Base error for content API failures."""


class InvalidRequestError(NetworkError):
    """Raised when a request cannot be built from the configuration or arguments."""

    def __init__(self, message: str = "Invalid URL") -> None:
        super().__init__(message)


class DecodingError(NetworkError):
    """Raised when a response body does not match the expected envelope."""

    def __init__(self, message: str = "Failed to decode response") -> None:
        super().__init__(message)


class ServerError(NetworkError):
    """Raised for any other transport or HTTP failure."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail
