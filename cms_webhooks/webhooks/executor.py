"""HTTP delivery of signed webhook requests."""

import asyncio
import time

import httpx

from cms_webhooks.config.models.delivery import DeliveryConfig
from cms_webhooks.observability.logging import get_logger
from cms_webhooks.webhooks.exceptions import DeliveryError
from cms_webhooks.webhooks.models import DeliveryResult

logger = get_logger(__name__)


class DeliveryExecutor:
    """Send one POST per call with a hard timeout.

    Never retries on its own; retries are explicit caller operations.
    The body must already be serialized so the logged and the sent
    payload are byte-identical.
    """

    def __init__(
        self,
        config: DeliveryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            config: Delivery settings (response body limit)
            client: Optional pre-built HTTP client, e.g. with a mock transport
        """
        self._config = config or DeliveryConfig()
        self._client = client

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _truncate(self, body: str | None) -> str | None:
        if body is None:
            return None
        return body[: self._config.response_body_limit]

    async def deliver(
        self,
        url: str,
        headers: dict[str, str],
        body: str,
        timeout_ms: int,
    ) -> DeliveryResult:
        """POST a serialized body and capture the response.

        Args:
            url: Target URL
            headers: Request headers (signature included)
            body: Serialized JSON payload
            timeout_ms: Hard wall-clock budget for the whole request

        Returns:
            DeliveryResult for any HTTP response, 2xx or not

        Raises:
            DeliveryError: On network failure, timeout or a request that
                cannot be sent
        """
        client = await self._ensure_client()
        request_headers = {**headers, "Content-Type": "application/json"}
        timeout_s = timeout_ms / 1000

        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.post(
                    url,
                    content=body.encode("utf-8"),
                    headers=request_headers,
                    timeout=timeout_s,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            logger.warning("webhook_timeout", url=url, timeout_ms=timeout_ms)
            raise DeliveryError(f"Timeout after {timeout_ms}ms", duration_ms) from e
        except httpx.HTTPError as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            logger.warning(
                "webhook_http_error",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DeliveryError(str(e) or type(e).__name__, duration_ms) from e
        except Exception as e:
            # e.g. a header value httpx cannot encode
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            logger.warning(
                "webhook_request_error",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DeliveryError(f"{type(e).__name__}: {e}", duration_ms) from e
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        # An unreadable body does not fail the delivery
        try:
            response_body: str | None = response.text
        except (UnicodeDecodeError, LookupError, httpx.HTTPError) as e:
            logger.debug("webhook_response_body_unreadable", url=url, error=str(e))
            response_body = None

        return DeliveryResult(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            response_body=self._truncate(response_body),
            duration_ms=duration_ms,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
