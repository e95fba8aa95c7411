from typing import Any

import httpx

from medcheck.logging.logger import Log
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.exceptions import RequestError, ServiceError, ServiceResponseError


class HttpBackendClient(BaseBackendClient):
    """Backend client that exchanges JSON over HTTP with httpx."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        error_message: str,
    ) -> dict[str, Any]:
        Log.debug(f"POST {path}")
        try:
            response = await self._client.post(path, json=payload)
        except httpx.RequestError as exc:
            raise RequestError(f"Backend network error on {path}: {exc}") from exc

        if not response.is_success:
            message = self._error_field(response) or error_message
            Log.warning(f"POST {path} returned {response.status_code}: {message}")
            raise ServiceError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise ServiceResponseError(f"Invalid JSON response from {path}: {exc}") from exc
        if not isinstance(body, dict):
            raise ServiceResponseError(f"Response from {path} must be a JSON object")
        return body

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _error_field(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return ""
