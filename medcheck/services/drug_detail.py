from medcheck.logging.logger import Log
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.exceptions import PreconditionError
from medcheck.services.validator import build_details

DEFAULT_DRUG_INFO_ERROR = "Failed to fetch drug information."


class DrugDetailService:
    """Fetches free-text descriptive information for a single drug."""

    def __init__(self, client: BaseBackendClient, path: str = "/api/drug-info") -> None:
        self._client = client
        self._path = path

    async def fetch(self, drug_name: str) -> str:
        """Return the details text; it may contain embedded newlines."""
        if not drug_name.strip():
            raise PreconditionError("Drug name must not be blank")
        body = await self._client.post_json(
            self._path,
            {"drugName": drug_name},
            error_message=DEFAULT_DRUG_INFO_ERROR,
        )
        details = build_details(body)
        Log.debug(f"Fetched {len(details)} chars of details for {drug_name!r}")
        return details
