import time
import logging
from typing import Iterator, Optional

import requests

from .config import config_manager
from .errors import NetworkError, RateLimitExhausted, RequestFailed

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS = 429


def fibonacci_backoff() -> Iterator[int]:
    """
    Yields successive retry waits, in seconds: 0, 1, 1, 2, 3, 5, 8, ...

    The generator is unbounded; the caller decides when a wait is too long.
    Every call returns a fresh sequence.
    """
    current, following = 0, 1
    while True:
        yield current
        current, following = following, current + following


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class FetchClient:
    """
    HTTP GET with an identifying User-Agent and a slow backoff on rate limiting.

    A single ``requests.Session`` is built at construction and reused for every
    request, so one client should be shared between all backends.
    """
    def __init__(self, user_agent: Optional[str] = None, timeout: Optional[float] = None,
                 max_backoff_wait: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.user_agent = user_agent or config_manager.get('user_agent')
        self.timeout = timeout if timeout is not None else config_manager.get('request_timeout', 30.0)
        if max_backoff_wait is None:
            max_backoff_wait = config_manager.get('max_backoff_wait', 60.0)
        self.max_backoff_wait = max_backoff_wait

        self.session = session if session is not None else requests.Session()
        self.session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
        })

    def _send(self, url: str) -> requests.Response:
        try:
            return self.session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise NetworkError(url, str(e) or e.__class__.__name__) from e

    def get(self, url: str) -> requests.Response:
        """
        Sends a GET request, retrying only while the server answers HTTP 429.

        Args:
            url: The URL to fetch.

        Returns:
            requests.Response: The first response that is not a 429, whatever its status.

        Raises:
            NetworkError: the request could not be sent or answered.
            RateLimitExhausted: the next backoff wait would exceed ``max_backoff_wait``.
        """
        waits = fibonacci_backoff()
        attempts = 0
        waited = 0.0
        while True:
            attempts += 1
            logger.debug(f"GET {url} (attempt {attempts})")
            response = self._send(url)
            if response.status_code != TOO_MANY_REQUESTS:
                return response

            wait = next(waits)
            if wait > self.max_backoff_wait:
                logger.error(f"Giving up on {url}: rate limited {attempts} times")
                raise RateLimitExhausted(url, attempts, waited)
            logger.warning(f"Rate limited on {url} (attempt {attempts}). Retrying in {wait}s...")
            time.sleep(wait)
            waited += wait

    def get_ok(self, url: str, message: str) -> requests.Response:
        """Like ``get`` but raises ``RequestFailed`` on a non-success status."""
        response = self.get(url)
        if not is_success(response.status_code):
            raise RequestFailed(message, response.status_code, response.text)
        return response

    def get_bytes(self, url: str, message: str) -> bytes:
        return self.get_ok(url, message).content
