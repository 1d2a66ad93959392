"""A single InfluxDB endpoint tracked by the connection pool."""

from __future__ import annotations

from typing import Dict, Mapping, Optional
from urllib.parse import urlsplit

from .backoff import BackoffStrategy


class Host:
    """One database endpoint plus its current backoff state.

    Only ``fail()`` and ``success()`` mutate a host; pool membership is
    managed by the pool itself.
    """

    def __init__(
        self,
        url: str,
        backoff: BackoffStrategy,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        verify_ssl: bool = True,
    ) -> None:
        parsed = urlsplit(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"Invalid host url: {url!r}")
        self.url = parsed
        self.headers: Dict[str, str] = dict(headers or {})
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._backoff = backoff

    @property
    def base_url(self) -> str:
        """Scheme, host, port and path prefix without a trailing slash."""
        return f"{self.url.scheme}://{self.url.netloc}{self.url.path.rstrip('/')}"

    @property
    def backoff(self) -> BackoffStrategy:
        return self._backoff

    def request_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return self.base_url + path

    def fail(self) -> int:
        """Mark a failure and return how long (ms) the host should be disabled."""
        delay = self._backoff.get_delay()
        self._backoff = self._backoff.next()
        return delay

    def success(self) -> None:
        """Reset the backoff after a successful request."""
        self._backoff = self._backoff.reset()

    def __repr__(self) -> str:
        return f"Host({self.base_url})"
