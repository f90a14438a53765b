"""
HTTP transport for the inference API.

Sends single requests with authentication and JSON content headers and
classifies failures before any response body is consumed:
- network failures and timeouts become TransportError
- non-2xx responses become APIError, parsed from the error body if possible

No retries or backoff are performed.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from ..config import ClientConfig
from ..logging_utils import classify_error
from .exceptions import APIError, TransportError

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_EVENT_STREAM = "text/event-stream"

logger = structlog.get_logger(__name__)


class Transport:
    """Authenticated request sender over a shared httpx.AsyncClient."""

    def __init__(
        self,
        config: ClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self.client: httpx.AsyncClient = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout),
        )

    def _headers(self, extra_headers: dict[str, str] | None) -> httpx.Headers:
        headers = httpx.Headers({
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": CONTENT_TYPE_JSON,
            "Accept": CONTENT_TYPE_JSON,
        })
        if extra_headers:
            headers.update(extra_headers)
        return headers

    @staticmethod
    def _encode_body(body: Any) -> bytes | None:
        if body is None:
            return None
        if isinstance(body, BaseModel):
            body = body.model_dump(exclude_none=True)
        try:
            return json.dumps(body).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ValueError(f"error marshaling request body: {e}") from e

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        extra_headers: dict[str, str] | None = None,
        *,
        stream: bool = False,
    ) -> httpx.Response:
        """
        Send one request and return the successful response.

        With ``stream=True`` the body is left unread and the caller owns the
        response until it calls ``aclose()``.

        Raises:
            TransportError: The request could not be completed.
            APIError: The API answered with a non-2xx status.
        """
        request = self.client.build_request(
            method,
            f"{self.config.base_url}{path}",
            content=self._encode_body(body),
            headers=self._headers(extra_headers),
        )
        logger.debug("Sending request", method=method, path=path, stream=stream)

        try:
            response = await self.client.send(request, stream=stream)
        except httpx.HTTPError as e:
            category = classify_error(e)
            logger.error(
                "Request failed", method=method, path=path,
                error_category=category, error_message=str(e),
            )
            raise TransportError(
                f"error making request: {e}", category=category
            ) from e

        if not response.is_success:
            await self._raise_api_error(response)

        return response

    async def _raise_api_error(self, response: httpx.Response) -> None:
        status = response.status_code
        try:
            raw = await response.aread()
        except httpx.HTTPError as e:
            raise TransportError(
                f"error reading error response (HTTP {status}): {e}",
                category=classify_error(e),
                status_code=status,
            ) from e
        finally:
            await response.aclose()

        text = raw.decode("utf-8", errors="replace")
        logger.warning("API returned error status", status_code=status)

        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            data = None

        error = data.get("error", data) if isinstance(data, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            code = error.get("code")
            raise APIError(
                error["message"],
                status_code=status,
                error_type=error.get("type"),
                code=None if code is None else str(code),
                body=text,
                response_data=data,
            )

        raise APIError(f"HTTP {status}: {text}", status_code=status, body=text)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
