# src/sources/base_source.py

"""Abstract base class for all marketplace API sources."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import SourceUnavailableError
from src.models.product import SourcePlatform
from src.models.raw_listing import RawListing


class BaseSource(ABC):
    """Abstract base class for all marketplace API sources."""

    platform: SourcePlatform

    def __init__(self) -> None:
        self.source_name = self.platform.value
        self.logger = logging.getLogger(
            f"protein_match.{self.source_name}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._current_delay: float = self.settings.REQUEST_DELAY
        self._consecutive_failures: int = 0
        self._circuit_open: bool = False
        self._circuit_opened_at: float = 0.0
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    def _check_circuit(self) -> bool:
        """Return True if the circuit breaker blocks this request.

        After CIRCUIT_BREAKER_COOLDOWN seconds the breaker enters
        a half-open state, allowing a single trial request through.
        """
        if not self._circuit_open:
            return False
        elapsed = time.time() - self._circuit_opened_at
        if elapsed >= self.settings.CIRCUIT_BREAKER_COOLDOWN:
            self.logger.info(
                "[%s] Circuit breaker half-open after %.0fs",
                self.source_name,
                elapsed,
            )
            self._circuit_open = False
            return False
        return True

    def _record_success(self) -> None:
        """Reset failure counters after a successful fetch."""
        self._consecutive_failures = 0
        self._circuit_open = False
        self._circuit_opened_at = 0.0
        self._current_delay = self.settings.REQUEST_DELAY

    def _record_failure(self) -> None:
        """Track failure and open circuit breaker if needed."""
        self._consecutive_failures += 1
        if self._consecutive_failures >= self.settings.CIRCUIT_BREAKER_THRESHOLD:
            self._circuit_open = True
            self._circuit_opened_at = time.time()
            self.logger.error(
                "[%s] Circuit breaker opened after %d "
                "consecutive failures",
                self.source_name,
                self._consecutive_failures,
            )

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        self._current_delay = min(self._current_delay * 2, max_delay)
        self.logger.warning(
            "[%s] Rate-limited, delay escalated to %.1fs",
            self.source_name,
            self._current_delay,
        )

    def _fetch_json(
        self,
        url: str,
        params: dict[str, str],
    ) -> dict[str, Any]:
        """GET a JSON API with retries, adaptive delay and circuit breaker.

        Raises:
            SourceUnavailableError: circuit open, retries exhausted or
                the body is not a JSON object.
        """
        if self._check_circuit():
            raise SourceUnavailableError(
                self.source_name, "circuit breaker open"
            )
        last_error = "no response"
        for attempt in range(self.settings.MAX_RETRIES):
            try:
                resp = self.session.get(
                    url,
                    params=params,
                    headers=self.settings.DEFAULT_HEADERS,
                    timeout=self._request_timeout,
                )
                if resp.status_code == 200:
                    data = resp.json()
                    if not isinstance(data, dict):
                        raise SourceUnavailableError(
                            self.source_name, "unexpected response body"
                        )
                    self._record_success()
                    return data
                last_error = f"HTTP {resp.status_code}"
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d",
                    self.source_name,
                    resp.status_code,
                    attempt + 1,
                )
                if resp.status_code in (429, 403):
                    self._escalate_delay()
                time.sleep(self._current_delay)
            except SourceUnavailableError:
                self._record_failure()
                raise
            except Exception as exc:
                last_error = str(exc)
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.source_name,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                time.sleep(self._current_delay * (attempt + 1))
        self._record_failure()
        raise SourceUnavailableError(self.source_name, last_error)

    @staticmethod
    def to_int(value: Any) -> int:
        """Parse ints from API fields that may be str, float or missing."""
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def to_float(value: Any) -> float:
        """Parse floats from API fields that may be str or missing."""
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0

    @abstractmethod
    def search(self, query: str) -> list[RawListing]:
        """Search the marketplace and return raw listings.

        Raises:
            SourceUnavailableError: the marketplace could not be queried.
        """
        ...
