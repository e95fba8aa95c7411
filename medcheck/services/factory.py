from typing import ClassVar

from medcheck.config.settings import Settings
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.example_client_adapter import ExampleBackendClient
from medcheck.services.http_client_adapter import HttpBackendClient


class BackendClientFactory:
    """Creates the configured backend client adapter."""

    PROVIDERS: ClassVar[tuple[str, ...]] = ("http", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseBackendClient:
        provider = settings.backend_provider.lower()
        if provider == "example":
            return ExampleBackendClient()
        if provider == "http":
            base_url = settings.api_base_url.strip()
            if not base_url:
                raise ValueError("api_base_url is required for backend_provider=http")
            return HttpBackendClient(
                base_url=base_url,
                timeout_seconds=settings.request_timeout_seconds,
            )
        raise ValueError(
            f"Unknown backend provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
