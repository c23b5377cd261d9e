from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from access_console.api.errors import (
    AccessDeniedError,
    ApiError,
    ApiErrorCategory,
    AuthenticationError,
    category_for_status,
)
from access_console.config import Settings
from access_console.utils.logging import get_logger


logger = get_logger(__name__)

_RETRY_STATUSES = frozenset({429, 502, 503, 504})
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(slots=True)
class ApiClientConfig:
    base_url: str
    token: str | None = None
    timeout: float = 30.0
    max_retries: int = 2
    backoff_cap: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ApiClientConfig":
        return cls(
            base_url=settings.normalized_base_url(),
            token=settings.api_token,
            timeout=settings.request_timeout,
        )


def _retry_delay(attempt: int, retry_after: str | None, cap: float) -> float:
    if retry_after:
        try:
            return min(max(float(retry_after), 0.0), cap)
        except ValueError:
            pass
    return min(0.5 * (2 ** (attempt - 1)), cap)


def _error_message(response: httpx.Response) -> tuple[str, str | None]:
    """Extract a human readable message and error code from an error payload."""

    fallback = f"{response.request.method} {response.request.url.path} failed with {response.status_code}"
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or fallback, None)
    if not isinstance(payload, dict):
        return (fallback, None)
    message = payload.get("message")
    if isinstance(message, list):
        message = "; ".join(str(part) for part in message)
    code = payload.get("error") or payload.get("code")
    return (str(message) if message else fallback, str(code) if code else None)


class ApiClient:
    """Thin async JSON client for the back-office REST API."""

    def __init__(
        self,
        config: ApiClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers=self._headers(),
                timeout=self._config.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ApiClient":
        self._ensure_client()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ----------------------------------------------------------------- Requests

    async def get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.request_json("GET", path, params=params)

    async def post_json(self, path: str, body: Any | None = None) -> Any:
        return await self.request_json("POST", path, json_body=body)

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        client = self._ensure_client()
        method = method.upper()
        retriable = method in _IDEMPOTENT_METHODS
        attempt = 1
        start = time.perf_counter()

        while True:
            try:
                response = await client.request(
                    method,
                    path,
                    params=params,
                    json=json_body,
                )
            except httpx.TimeoutException as exc:
                logger.warning("API request timed out", method=method, path=path)
                raise ApiError(
                    message=f"Timed out calling {method} {path}",
                    category=ApiErrorCategory.NETWORK,
                    inner_error=exc,
                ) from exc
            except httpx.RequestError as exc:
                logger.warning(
                    "API request failed", method=method, path=path, error=str(exc)
                )
                raise ApiError(
                    message=f"Network error calling {method} {path}: {exc}",
                    category=ApiErrorCategory.NETWORK,
                    inner_error=exc,
                ) from exc

            if (
                retriable
                and response.status_code in _RETRY_STATUSES
                and attempt <= self._config.max_retries
            ):
                delay = _retry_delay(
                    attempt,
                    response.headers.get("Retry-After"),
                    self._config.backoff_cap,
                )
                logger.debug(
                    "Retrying API request",
                    method=method,
                    path=path,
                    status=response.status_code,
                    attempt=attempt,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                attempt += 1
                continue

            duration_ms = (time.perf_counter() - start) * 1000
            if response.status_code >= 400:
                logger.error(
                    "API request returned error",
                    method=method,
                    path=path,
                    status=response.status_code,
                    duration_ms=round(duration_ms, 1),
                )
                raise self._error_from_response(response)

            logger.debug(
                "API request completed",
                method=method,
                path=path,
                status=response.status_code,
                duration_ms=round(duration_ms, 1),
            )
            if response.status_code == 204 or not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                raise ApiError(
                    message=f"Invalid JSON returned by {method} {path}",
                    category=ApiErrorCategory.UNKNOWN,
                    status_code=response.status_code,
                    inner_error=exc,
                ) from exc

    def _error_from_response(self, response: httpx.Response) -> ApiError:
        message, code = _error_message(response)
        status = response.status_code
        if status == 401:
            return AuthenticationError(message)
        if status == 403:
            return AccessDeniedError(message)
        return ApiError(
            message=message,
            category=category_for_status(status),
            status_code=status,
            code=code,
        )


__all__ = ["ApiClient", "ApiClientConfig"]
