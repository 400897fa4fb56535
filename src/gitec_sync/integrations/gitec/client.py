"""Gitec catalog API client with resilient retry."""

import logging
from typing import Any, Dict, List, Optional

import requests
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ...exceptions import FetchError
from ...models.config import SyncSettings
from ...services.recorders import OperationalLog

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 503, 504})


class TransientFetchError(FetchError):
    """A failed attempt that is worth repeating."""


class GitecClient:
    """Fetches the full product catalog from the Gitec REST API."""

    def __init__(
        self,
        username: str,
        password: str,
        oplog: OperationalLog,
        base_url: str = "https://b2b.gitec.ge/restapi/",
        language: str = "ge",
        timeout: float = 120.0,
        connect_timeout: float = 30.0,
        verify_ssl: bool = False,
        max_attempts: int = 5,
        retry_delay: float = 10.0,
        backoff_factor: float = 1.5,
        session: Optional[requests.Session] = None
    ):
        """Initialize the Gitec client.

        Args:
            username: Value of the ``username`` request header
            password: Value of the ``password`` request header
            oplog: Operational log receiving one entry per attempt
            base_url: Base URL for the catalog API
            language: Catalog language code
            timeout: Read timeout in seconds; the full catalog is a large payload
            connect_timeout: Connect timeout in seconds
            verify_ssl: Whether to verify the server's TLS certificate
            max_attempts: Total attempts, including the first one
            retry_delay: Wait before the second attempt, in seconds
            backoff_factor: Multiplier applied to the wait after every attempt
        """
        self.username = username
        self.password = password
        self.oplog = oplog
        self.base_url = base_url if base_url.endswith('/') else f"{base_url}/"
        self.language = language
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.verify_ssl = verify_ssl
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.backoff_factor = backoff_factor

        self.session = session or requests.Session()
        self.session.headers.update({
            'username': self.username,
            'password': self.password,
            'User-Agent': 'Gitec-Product-Sync/1.0',
        })

    @classmethod
    def from_settings(cls, settings: SyncSettings, oplog: OperationalLog) -> "GitecClient":
        """Create a client from sync settings."""
        return cls(
            username=settings.api_username,
            password=settings.api_password,
            oplog=oplog,
            base_url=settings.api_base_url,
            language=settings.language,
            timeout=settings.request_timeout,
            connect_timeout=settings.connect_timeout,
            verify_ssl=settings.verify_ssl,
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay,
            backoff_factor=settings.backoff_factor,
        )

    @property
    def products_url(self) -> str:
        return f"{self.base_url}products"

    def _log_wait(self, retry_state: RetryCallState) -> None:
        self.oplog.info(f"Next attempt in {retry_state.next_action.sleep:g} seconds")

    def fetch_all(self) -> List[Dict[str, Any]]:
        """Fetch every product record of the catalog.

        Returns:
            The catalog's JSON array, one dict per product

        Raises:
            FetchError: If the catalog could not be fetched. ``kind`` tells
                transport failures, exhausted retries, unexpected status codes,
                unparsable bodies and empty catalogs apart.
        """
        if not self.username or not self.password:
            self.oplog.error("API username or password is not set")
            raise FetchError("API credentials are not configured", kind=FetchError.CONFIGURATION)
        if self.max_attempts < 1:
            raise FetchError("No request attempts configured", kind=FetchError.CONFIGURATION)

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_delay, exp_base=self.backoff_factor),
            retry=retry_if_exception_type(TransientFetchError),
            before_sleep=self._log_wait,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                response = self._request_once(attempt_number)

        return self._parse(response, attempt_number)

    def _request_once(self, attempt: int) -> requests.Response:
        self.oplog.info(f"API request attempt {attempt}/{self.max_attempts}")
        try:
            logger.debug(f"Making GET request to {self.products_url} (language={self.language})")
            response = self.session.request(
                'GET',
                self.products_url,
                params={'language': self.language},
                timeout=(self.connect_timeout, self.timeout),
                verify=self.verify_ssl,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            self.oplog.error(f"API error (attempt {attempt}/{self.max_attempts}): {e}")
            raise TransientFetchError(f"Request failed: {e}", kind=FetchError.TRANSPORT, attempts=attempt) from e
        except requests.exceptions.RequestException as e:
            self.oplog.error(f"API request could not be sent: {e}")
            raise FetchError(f"Request failed: {e}", kind=FetchError.TRANSPORT, attempts=attempt) from e

        status_code = response.status_code
        if status_code in RETRYABLE_STATUS_CODES:
            self.oplog.error(f"Server error (code: {status_code}, attempt {attempt}/{self.max_attempts})")
            raise TransientFetchError(
                f"Server answered {status_code} on attempt {attempt}/{self.max_attempts}",
                kind=FetchError.RETRY_EXHAUSTED,
                status_code=status_code,
                attempts=attempt,
            )

        if status_code != 200:
            self.oplog.error(f"Unexpected response code: {status_code}")
            raise FetchError(
                f"HTTP {status_code}: {response.text[:200]}",
                kind=FetchError.HTTP_STATUS,
                status_code=status_code,
                attempts=attempt,
            )
        return response

    def _parse(self, response: requests.Response, attempt: int) -> List[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError as e:
            self.oplog.error(f"JSON parse error: {e}")
            raise FetchError(f"JSON parse error: {e}", kind=FetchError.PARSE, attempts=attempt) from e

        if not data:
            self.oplog.error("No products found")
            raise FetchError("Catalog is empty", kind=FetchError.EMPTY, attempts=attempt)

        if not isinstance(data, list):
            self.oplog.error(f"Unexpected catalog payload: expected a list, got {type(data).__name__}")
            raise FetchError("Catalog payload is not a JSON array", kind=FetchError.PARSE, attempts=attempt)

        self.oplog.success(f"Successfully loaded {len(data)} products")
        return data

    def test_connection(self) -> Dict[str, Any]:
        """Fetch the catalog once and summarise the result."""
        try:
            products = self.fetch_all()
            return {"status": "success", "message": f"Fetched {len(products)} products"}
        except FetchError as e:
            return {"status": "error", "kind": e.kind, "message": str(e)}
