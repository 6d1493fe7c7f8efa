# abifetch/errors.py
from typing import Optional


class AbiFetchError(Exception):
    """Base class for every error raised by abifetch."""


class ConfigError(AbiFetchError):
    pass


class TransportError(AbiFetchError):
    """The HTTP call itself could not complete (DNS, connection, timeout...)."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Transport error for {url}: {reason}")
        self.url = url
        self.reason = reason


class HttpStatusError(AbiFetchError):
    """The HTTP call completed but the status code signals failure."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP error! status: {status_code}")
        self.url = url
        self.status_code = status_code


class RetriesExhausted(AbiFetchError):
    def __init__(self, retries: int, last_error: Exception, attempts: Optional[list] = None):
        super().__init__(f"All {retries} attempts failed. Last error: {last_error}")
        self.retries = retries
        self.last_error = last_error
        self.attempts = attempts or []


class ExplorerError(AbiFetchError):
    def __init__(self, message: str, result=None):
        super().__init__(message if result is None else f"{message}: {result}")
        self.message = message
        self.result = result


class AbiFormatError(AbiFetchError):
    pass


class TransactionError(AbiFetchError):
    """A sent transaction was reverted or its receipt lacks the expected event."""
