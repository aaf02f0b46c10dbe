"""HTTP client for the OpenAI-compatible models listing."""

from __future__ import annotations

from typing import Any, List, Optional

import httpx

from synclaude import __version__
from synclaude.core.errors import CatalogApiError
from synclaude.utils.log import get_logger


logger = get_logger()

DEFAULT_TIMEOUT_SEC = 30.0


def _extract_error_message(response: httpx.Response) -> str:
    text = response.text
    try:
        payload = response.json()
    except ValueError:
        return text or response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict):
            detail = err.get("message")
            if isinstance(detail, str) and detail:
                return detail
        for field in ("message", "error"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return value
    return text or response.reason_phrase or f"HTTP {response.status_code}"


class CatalogClient:
    """Fetches raw catalog entries. Instances are zero-argument fetchers."""

    def __init__(
        self,
        api_key: str,
        catalog_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.catalog_url = catalog_url
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": f"synclaude/{__version__}",
        }

    def fetch_raw(self) -> List[Any]:
        """GET the catalog once and return the ``data`` array of the response."""
        logger.debug("[client] Fetching models", extra={"url": self.catalog_url})
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(self.catalog_url, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise CatalogApiError(f"Network error: request timed out ({exc})") from exc
        except httpx.HTTPError as exc:
            raise CatalogApiError(f"Network error: {exc}") from exc

        if response.status_code >= 400:
            message = _extract_error_message(response)
            logger.warning(
                "[client] Catalog request failed",
                extra={"url": self.catalog_url, "status": response.status_code},
            )
            raise CatalogApiError(
                f"API error {response.status_code}: {message}",
                status_code=response.status_code,
                payload=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise CatalogApiError(
                "API returned a non-JSON response",
                status_code=response.status_code,
                payload=response.text,
            ) from exc

        if isinstance(payload, dict):
            data = payload.get("data")
        else:
            data = payload
        if not isinstance(data, list):
            raise CatalogApiError(
                "API response does not contain a model list",
                status_code=response.status_code,
                payload=payload,
            )
        return data

    def __call__(self) -> List[Any]:
        return self.fetch_raw()
