"""HTTP search index client with retries, a circuit breaker and context headers.

This module implements ``SearchIndexPort`` against the standalone search
service using ``httpx``. It adds:

- Request correlation: propagates ``X-Request-ID`` from the ContextVar set
    by the gateway middleware.
- A circuit breaker guarding the search service, with HALF_OPEN probing
    after a timeout.
- A simple retry policy with exponential backoff for transport errors and
    5xx responses.
"""

import threading
import time
from typing import Dict, List, Optional

import httpx
from django.conf import settings

from gateway.middleware import REQUEST_ID_CTX

from .domain import FoodOrder, SearchIndexPort


class CircuitOpenError(RuntimeError):
    """Raised instead of calling a downstream service whose circuit is open."""


# ---------------- Circuit Breaker ---------------- #

class CircuitBreaker:
    """Minimal circuit breaker with CLOSED/OPEN/HALF_OPEN states.

    Transitions:
    - CLOSED → OPEN when failures reach ``fail_threshold``.
    - OPEN → HALF_OPEN after ``reset_timeout`` seconds.
    - HALF_OPEN → CLOSED on a successful trial call; only one trial call may be in
      flight; a failed trial call opens the circuit again.

    Thread-safe via an internal lock.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = "CLOSED"  # CLOSED | OPEN | HALF_OPEN
        self._opened_at = 0.0
        self._half_open_trial_in_flight = False

    @property
    def state(self) -> str:
        """Current breaker state with time-based transition handling."""
        with self._lock:
            if self._state == "OPEN" and (time.monotonic() - self._opened_at) >= self.reset_timeout:
                self._state = "HALF_OPEN"
                self._half_open_trial_in_flight = False
            return self._state

    def before_call(self) -> str:
        """Check and update state before a protected call.

        Returns:
            str: The state at call time.

        Raises:
            CircuitOpenError: If the circuit is OPEN or a HALF_OPEN trial call is
                already in flight.
        """
        with self._lock:
            st = self.state
            if st == "OPEN":
                raise CircuitOpenError("CIRCUIT_OPEN")
            if st == "HALF_OPEN":
                if self._half_open_trial_in_flight:
                    raise CircuitOpenError("CIRCUIT_HALF_OPEN_BUSY")
                self._half_open_trial_in_flight = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = "CLOSED"
            self._half_open_trial_in_flight = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            if self._state == "HALF_OPEN" or (self._failures >= self.fail_threshold and self._state != "OPEN"):
                self._state = "OPEN"
                self._opened_at = time.monotonic()
                self._half_open_trial_in_flight = False

    def on_finish(self):
        with self._lock:
            if self._state == "HALF_OPEN":
                self._half_open_trial_in_flight = False


_search_cb = CircuitBreaker(
    "search",
    getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
    getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
)


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    """Build base headers including X-Request-ID and any extras."""
    headers: Dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy():
    """Return retry configuration as (max_retries, backoff_base_seconds)."""
    return (
        getattr(settings, "HTTP_RETRY_MAX", 3),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
    )


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    """Retry only on transport errors or HTTP 5xx."""
    if exc is not None:
        return True
    if resp is not None and 500 <= resp.status_code < 600:
        return True
    return False


# ---------------- Search Index Adapter ---------------- #

class HttpSearchIndexClient(SearchIndexPort):
    """HTTP client for the search service with retry and circuit breaker."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = base_url or settings.SEARCH_INDEX_BASE_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def _send(self, method: str, path: str, ok_statuses=(200,), **kwargs) -> httpx.Response:
        """Send one logical request, retrying as configured.

        Responses whose status is in ``ok_statuses`` are returned and count
        as circuit successes. Other 4xx responses are raised immediately;
        transport errors and 5xx are retried and, once retries are
        exhausted, recorded as a circuit failure and raised.

        Raises:
            CircuitOpenError: When the circuit refuses the call.
            httpx.RequestError: For network/transport errors after retries.
            httpx.HTTPStatusError: For non-retriable or exhausted non-2xx
                responses.
        """
        max_retries, backoff = _retry_policy()
        tries = 0

        state = _search_cb.before_call()
        headers = _request_headers({"X-Circuit-State": state, "X-Retry-Count": "0"})

        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
                        if resp.status_code in ok_statuses:
                            _search_cb.on_success()
                            return resp
                        if not _should_retry(resp, None):
                            # client error: the service is healthy
                            _search_cb.on_success()
                            resp.raise_for_status()
                    except httpx.RequestError as e:
                        exc = e

                    tries += 1
                    headers["X-Retry-Count"] = str(tries)

                    if tries > max_retries or not _should_retry(resp, exc):
                        _search_cb.on_failure()
                        if exc:
                            raise exc
                        resp.raise_for_status()

                    sleep_s = backoff * (2 ** (tries - 1))
                    cap = getattr(settings, "HTTP_RETRY_MAX_SLEEP", 0.5)
                    time.sleep(min(sleep_s, cap))
        finally:
            _search_cb.on_finish()

    def index(self, order: FoodOrder) -> None:
        self._send("PUT", f"/documents/{order.id}", json={"text": order.search_text()})

    def remove(self, order_id: int) -> None:
        # 404: nothing indexed for this id
        self._send("DELETE", f"/documents/{order_id}", ok_statuses=(200, 204, 404))

    def search(self, query: str) -> List[int]:
        """Query the search service.

        Returns:
            list[int]: The ids returned by the service, in its order.
        """
        resp = self._send("GET", "/search", params={"q": query})
        return [int(i) for i in resp.json().get("ids", [])]

    def ping(self) -> bool:
        try:
            self._send("GET", "/health")
        except (httpx.HTTPError, CircuitOpenError):
            return False
        return True
