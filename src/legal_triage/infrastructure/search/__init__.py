"""
Document Search Client
======================

HTTP client for the external semantic-search service.

Embedding generation and nearest-neighbour search happen inside that
service; this client only posts the query and reads back ranked chunks.

Provides:
- Circuit breaker to prevent cascade failures
- Exponential backoff retry
- Timeout handling
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from legal_triage.core import ConfigurationException, DocumentSearchException
from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


def _parse_hit(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten one result; metadata-style payloads are accepted too."""
    metadata = raw.get("metadata") or {}
    return {
        "title": raw.get("title") or metadata.get("title") or "Untitled",
        "category": raw.get("category") or metadata.get("category") or "general",
        "content": raw.get("content") or metadata.get("content") or "",
        "score": float(raw.get("score") or 0.0),
    }


class HTTPDocumentSearchClient:
    """
    Semantic search client posting `{"query", "top_k"}` to the service.

    Accepts either a JSON list of hits or `{"results": [...]}`.
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        timeout_seconds: float = 5.0,
        max_retries: int = 2,
        retry_base_delay: float = 0.5,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        if not base_url:
            raise ConfigurationException("Document search URL not configured")
        self._url = base_url.rstrip("/") + "/search"
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._circuit_breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
            self._http_client = httpx.AsyncClient(timeout=self._timeout, headers=headers)
        return self._http_client

    async def search(self, query: str, top_k: int = 3) -> List[Dict[str, Any]]:
        """
        Search the document library.

        Args:
            query: User question
            top_k: Number of chunks to return

        Returns:
            List of dicts with title, category, content and score

        Raises:
            DocumentSearchException: When the service is unavailable
        """
        if not self._circuit_breaker.allow_request():
            raise DocumentSearchException("circuit breaker open")

        last_error: Optional[str] = None
        for attempt in range(self._max_retries + 1):
            try:
                client = await self._get_client()
                response = await client.post(self._url, json={"query": query, "top_k": top_k})
                if response.status_code == 200:
                    payload = response.json()
                    results = (payload.get("results") if isinstance(payload, dict) else payload) or []
                    self._circuit_breaker.record_success()
                    return [_parse_hit(r) for r in results[:top_k]]

                last_error = f"status {response.status_code}"
                logger.warning(
                    "Document search returned non-200",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                logger.error(
                    "Document search failed",
                    extra={"error": str(e), "attempt": attempt + 1}
                )

            if attempt < self._max_retries:
                await asyncio.sleep(self._retry_base_delay * (2 ** attempt))

        self._circuit_breaker.record_failure()
        raise DocumentSearchException(f"search failed: {last_error}")

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
