from abc import ABC, abstractmethod
from typing import Any


class BaseBackendClient(ABC):
    """Contract for transports that reach the recognition backend."""

    @abstractmethod
    async def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        error_message: str,
    ) -> dict[str, Any]:
        """POST a JSON body and return the decoded JSON object.

        Raises:
            RequestError: if no response was received.
            ServiceError: on a non-success status; the message comes from the
                body's ``error`` field or falls back to ``error_message``.
        """

    async def aclose(self) -> None:
        """Release transport resources. Default is a no-op."""
