"""HTTP client for the Kirby CMS JSON API."""

import time
from collections.abc import Callable
from typing import Any

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from ..errors import ResourceUnavailableError, TransientFetchError

RetryHook = Callable[[str, int, TransientFetchError], None]


class KirbyClient:
    """Fetches JSON documents from a Kirby CMS with bounded retries."""

    def __init__(
        self,
        base_url: str,
        retries: int = 3,
        retry_delay: float = 1.0,
        backoff: float = 1.0,
        timeout: float = 30,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: RetryHook | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: CMS base URL (trailing slash is stripped)
            retries: Total number of attempts per resource
            retry_delay: Seconds to wait between attempts
            backoff: Multiplier applied to the delay after each failed attempt
                (1.0 keeps the delay fixed)
            timeout: Per-request timeout in seconds
            session: Optional requests.Session to reuse
            sleep: Sleep function (injectable for tests)
            on_retry: Called as on_retry(url, attempt, error) before each wait
        """
        if retries < 1:
            raise ValueError("retries must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.retries = retries
        self.retry_delay = retry_delay
        self.backoff = backoff
        self.timeout = timeout
        self.session = session or requests.Session()
        self._sleep = sleep
        self.on_retry = on_retry

    def resource_url(self, path: str, language: str | None = None) -> str:
        """Build the full URL for a CMS resource.

        Args:
            path: Resource path, e.g. "index.json" or "about.json"
            language: Language code prefix, or None for the unprefixed root

        Returns:
            Fully-qualified URL
        """
        path = path.lstrip("/")
        if language:
            return f"{self.base_url}/{language}/{path}"
        return f"{self.base_url}/{path}"

    def _attempt(self, url: str) -> Any:
        """Make a single GET request, raising TransientFetchError on failure."""
        try:
            response = self.session.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransientFetchError(url, cause=e) from e

        if not 200 <= response.status_code < 300:
            raise TransientFetchError(url, status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise TransientFetchError(url, cause=e) from e

    def _wait_strategy(self, delay: float) -> wait_base:
        """Fixed delay, or a delay multiplied by backoff after each failure."""
        if self.backoff == 1:
            return wait_fixed(delay)
        return wait_exponential(multiplier=delay, exp_base=self.backoff)

    def _before_sleep(self, url: str) -> Callable[[RetryCallState], None]:
        def hook(retry_state: RetryCallState) -> None:
            if self.on_retry is None or retry_state.outcome is None:
                return
            error = retry_state.outcome.exception()
            if isinstance(error, TransientFetchError):
                self.on_retry(url, retry_state.attempt_number, error)

        return hook

    def fetch_json(
        self,
        url: str,
        retries: int | None = None,
        delay: float | None = None,
    ) -> Any:
        """Fetch a JSON document, retrying transient failures.

        Args:
            url: Fully-qualified URL
            retries: Override for the total number of attempts
            delay: Override for the initial delay between attempts

        Returns:
            Parsed JSON value

        Raises:
            ResourceUnavailableError: When every attempt failed
        """
        attempts = retries if retries is not None else self.retries
        wait = delay if delay is not None else self.retry_delay

        retrying = Retrying(
            retry=retry_if_exception_type(TransientFetchError),
            wait=self._wait_strategy(wait),
            stop=stop_after_attempt(attempts),
            sleep=self._sleep,
            reraise=True,
            before_sleep=self._before_sleep(url),
        )
        try:
            return retrying(self._attempt, url)
        except TransientFetchError as e:
            raise ResourceUnavailableError(
                url,
                status=e.status,
                cause=e.cause,
                attempts=attempts,
            ) from e

    def get(self, path: str, language: str | None = None) -> Any:
        """Fetch a CMS resource by path."""
        return self.fetch_json(self.resource_url(path, language))

    def verify_connection(self) -> bool:
        """Verify the CMS is reachable and serves a global document.

        Returns:
            True if global.json is a JSON object

        Raises:
            ResourceUnavailableError: On connection failure
        """
        return isinstance(self.get("global.json"), dict)
