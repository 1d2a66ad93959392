"""Round-robin HTTP connection pool with host quarantine and failover."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging
import math
import threading
import time

import requests

from .config import PoolOptions
from .exceptions import (
    InfluxDBAuthenticationError,
    InfluxDBConnectionError,
    InfluxDBQueryError,
    NoHostAvailableError,
    RequestError,
    ServiceNotAvailableError,
)
from .host import Host
from .models import PingStats

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]


@dataclass
class PoolRequest:
    """One logical request, replayed as-is against each host tried."""

    method: str = "GET"
    path: str = "/"
    query: Dict[str, Any] = field(default_factory=dict)
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    auth: Optional[Tuple[str, str]] = None


class Pool:
    """Balances requests over a set of hosts.

    Hosts that fail with a transport error or a 5xx status are moved to the
    disabled set for as long as their backoff dictates, and the request is
    retried on the next available host. ``scheduler`` is called as
    ``scheduler(delay_seconds, callback)`` to re-enable a host later; it
    defaults to a daemon ``threading.Timer``.
    """

    def __init__(
        self,
        options: Optional[PoolOptions] = None,
        session: Optional[requests.Session] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.options = options or PoolOptions()
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._scheduler = scheduler or self._start_timer
        self._lock = threading.RLock()
        self._available: List[Host] = []
        self._disabled: List[Host] = []
        self._index = 0
        self._timers: List[threading.Timer] = []
        self._closed = False

    # -------------------- Host management --------------------

    def hosts_available(self) -> List[Host]:
        with self._lock:
            return list(self._available)

    def hosts_disabled(self) -> List[Host]:
        with self._lock:
            return list(self._disabled)

    def add_host(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        verify_ssl: bool = True,
    ) -> Host:
        """Add a host to the pool, starting from a fresh backoff state."""
        host = Host(url, self.options.backoff.reset(), headers=headers, timeout=timeout, verify_ssl=verify_ssl)
        with self._lock:
            self._available.append(host)
        return host

    def host_is_available(self) -> bool:
        with self._lock:
            return bool(self._available)

    def _next_host(self) -> Host:
        with self._lock:
            if not self._available:
                raise NoHostAvailableError()
            host = self._available[self._index % len(self._available)]
            self._index = (self._index + 1) % len(self._available)
            return host

    def _disable_host(self, host: Host) -> None:
        with self._lock:
            if host not in self._available:
                return
            delay = host.fail()
            if delay <= 0:
                return
            self._available.remove(host)
            self._disabled.append(host)
            self._index %= max(1, len(self._available))

        logger.warning("Disabling host %s for %d ms", host.base_url, delay)
        self._scheduler(delay / 1000, lambda: self._enable_host(host))

    def _enable_host(self, host: Host) -> None:
        with self._lock:
            if host not in self._disabled:
                return
            self._disabled.remove(host)
            self._available.append(host)
        logger.info("Re-enabled host %s", host.base_url)

    def _start_timer(self, delay: float, callback: Callable[[], None]) -> Optional[threading.Timer]:
        # A closed pool starts no threads; its disabled hosts stay disabled.
        with self._lock:
            if self._closed:
                return None
            timer = threading.Timer(delay, callback)
            timer.daemon = True
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
            timer.start()
        return timer

    # -------------------- Requests --------------------

    def stream(self, request: PoolRequest) -> requests.Response:
        """Dispatch ``request`` and return the open response of a 2xx answer.

        Raises NoHostAvailableError without touching the network when every
        host is disabled, RequestError for 3xx/4xx answers and the last
        connection or service error once retries are exhausted.
        """
        attempts = 0
        while True:
            host = self._next_host()
            cause: Optional[BaseException] = None
            try:
                response = self._send(host, request)
            except (requests.ConnectionError, requests.Timeout) as exc:
                error: InfluxDBConnectionError = InfluxDBConnectionError(str(exc))
                cause = exc
            except requests.RequestException as exc:
                raise InfluxDBConnectionError(str(exc)) from exc
            else:
                status = response.status_code
                if 200 <= status < 300:
                    with self._lock:
                        host.success()
                    return response
                if status < 500:
                    body = response.text
                    response.close()
                    if status in (401, 403):
                        raise InfluxDBAuthenticationError(status, response.reason, body)
                    raise RequestError(status, response.reason, body)
                error = ServiceNotAvailableError(response.reason or f"HTTP {status}")
                response.close()

            self._disable_host(host)
            if attempts < self.options.max_retries and self.host_is_available():
                attempts += 1
                logger.debug("Retrying %s %s (attempt %d): %s", request.method, request.path, attempts + 1, error)
                continue
            raise error from cause

    def _send(self, host: Host, request: PoolRequest) -> requests.Response:
        timeout = host.timeout if host.timeout is not None else self.options.request_timeout
        url = host.request_url(request.path)
        logger.debug("%s %s", request.method, url)
        return self._session.request(
            request.method,
            url,
            params=request.query,
            data=request.body,
            headers={**host.headers, **request.headers},
            auth=request.auth,
            timeout=timeout / 1000,
            verify=host.verify_ssl,
            stream=True,
        )

    def text(self, request: PoolRequest) -> str:
        response = self.stream(request)
        try:
            return response.text
        finally:
            response.close()

    def json(self, request: PoolRequest) -> Any:
        response = self.stream(request)
        try:
            return response.json()
        except ValueError as exc:
            raise InfluxDBQueryError(f"Invalid JSON in response: {exc}") from exc
        finally:
            response.close()

    def discard(self, request: PoolRequest) -> None:
        self.stream(request).close()

    # -------------------- Liveness --------------------

    def ping(self, timeout: int, path: str = "/ping") -> List[PingStats]:
        """Probe every host, available or not, concurrently.

        A failing host is reported offline; this never raises for one host.
        """
        with self._lock:
            hosts = self._available + self._disabled
        if not hosts:
            return []
        with ThreadPoolExecutor(max_workers=len(hosts)) as executor:
            return list(executor.map(lambda h: self._ping_host(h, timeout, path), hosts))

    def _ping_host(self, host: Host, timeout: int, path: str) -> PingStats:
        start = time.monotonic()
        try:
            response = self._session.get(
                host.request_url(path),
                headers=host.headers,
                timeout=timeout / 1000,
                verify=host.verify_ssl,
            )
        except requests.RequestException as exc:
            logger.debug("Ping to %s failed: %s", host.base_url, exc)
            return PingStats(url=host.base_url, online=False, rtt=math.inf)
        rtt = (time.monotonic() - start) * 1000
        response.close()
        return PingStats(
            url=host.base_url,
            online=response.status_code < 300,
            rtt=rtt,
            version=response.headers.get("X-Influxdb-Version"),
            status_code=response.status_code,
        )

    # -------------------- Lifecycle --------------------

    def close(self) -> None:
        """Cancel pending re-enable timers and close an owned session.

        A closed pool still serves requests, but hosts it disables stay
        disabled.
        """
        with self._lock:
            self._closed = True
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        if self._owns_session:
            self._session.close()

    def __repr__(self) -> str:
        return f"Pool(available={self.hosts_available()}, disabled={self.hosts_disabled()})"
