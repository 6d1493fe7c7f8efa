# abifetch/retry.py
"""
HTTP fetch with a hard retry ceiling and a fixed backoff between attempts.

Attempts run strictly one after the other. A failed attempt is logged and
swallowed until the budget is spent; only RetriesExhausted reaches the caller.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import requests

from abifetch.errors import HttpStatusError, RetriesExhausted, TransportError
from abifetch.models import DEFAULT_BACKOFF_MS, DEFAULT_RETRIES, AttemptResult, RequestSpec

DEFAULT_TIMEOUT = 15  # seconds, per attempt


def _request_kwargs(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    kwargs = dict(options or {})
    kwargs.pop("method", None)
    # "body" is the generic name; requests calls it data
    if "body" in kwargs:
        kwargs["data"] = kwargs.pop("body")
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    return kwargs


class RetryingFetcher:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session or requests.Session()
        self.sleep   = sleep

    def fetch(
        self,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
        retries: int = DEFAULT_RETRIES,
        backoff_ms: int = DEFAULT_BACKOFF_MS,
    ) -> str:
        spec = RequestSpec(url=url, options=dict(options or {}),
                           retries=retries, backoff_ms=backoff_ms)
        return self.fetch_spec(spec)

    def fetch_spec(self, spec: RequestSpec) -> str:
        method = str(spec.options.get("method", "GET")).upper()
        kwargs = _request_kwargs(spec.options)
        history: List[AttemptResult] = []
        last_error: Optional[Exception] = None

        for attempt in range(1, spec.retries + 1):
            try:
                body = self._attempt(method, spec.url, kwargs)
                history.append(AttemptResult(attempt, body=body))
                return body
            except (TransportError, HttpStatusError) as e:
                last_error = e
                history.append(AttemptResult(attempt, error=str(e)))
                logging.warning(f"Attempt {attempt} failed. {e}")

            if attempt < spec.retries:
                logging.info(f"Retrying in {spec.backoff_ms}ms...")
                self.sleep(spec.backoff_ms / 1000)

        assert last_error is not None
        raise RetriesExhausted(spec.retries, last_error, history) from last_error

    def _attempt(self, method: str, url: str, kwargs: Dict[str, Any]) -> str:
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e

        if not 200 <= response.status_code < 400:
            raise HttpStatusError(url, response.status_code)
        return response.text


def fetch_with_retry(
    url: str,
    options: Optional[Mapping[str, Any]] = None,
    retries: int = DEFAULT_RETRIES,
    backoff_ms: int = DEFAULT_BACKOFF_MS,
) -> str:
    """
    One-shot helper around RetryingFetcher with a fresh session.

    :param url: Target URL.
    :param options: Pass-through request options (method, headers, body, params, timeout).
    :param retries: Maximum number of attempts.
    :param backoff_ms: Fixed delay between failed attempts, in milliseconds.
    :return: The raw response body text.
    """
    with requests.Session() as session:
        return RetryingFetcher(session=session).fetch(url, options, retries, backoff_ms)
