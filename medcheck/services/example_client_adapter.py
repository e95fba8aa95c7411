"""Example backend client adapter.

Use this module for local development and demos without a running backend.
It answers every endpoint with a fixed, well-formed response.
"""

from typing import Any, ClassVar

from medcheck.services.client_base import BaseBackendClient
from medcheck.services.exceptions import ServiceError


class ExampleBackendClient(BaseBackendClient):
    """Offline adapter returning canned identify, verify and drug-info bodies.

    Responses are keyed by the final path segment, so any configured prefix
    (``/api/identify``, ``/v2/identify``) resolves to the same answer.
    """

    IDENTIFY_RESPONSE: ClassVar[dict[str, Any]] = {
        "identifiedDrugs": [{"name": "Aspirin", "quantity": "10 tablets"}],
        "rawResponse": "Aspirin x10 (example backend)",
    }
    DRUG_INFO_RESPONSE: ClassVar[dict[str, Any]] = {
        "details": "Example backend.\nNo real drug information is available.",
    }

    def __init__(self) -> None:
        self.requests: list[tuple[str, dict[str, Any]]] = []

    async def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        error_message: str,
    ) -> dict[str, Any]:
        self.requests.append((path, payload))
        endpoint = path.rstrip("/").rsplit("/", 1)[-1]
        if endpoint == "identify":
            return dict(self.IDENTIFY_RESPONSE)
        if endpoint == "verify":
            return self._verify_response(payload)
        if endpoint == "drug-info":
            return dict(self.DRUG_INFO_RESPONSE)
        raise ServiceError(error_message, status_code=404)

    @staticmethod
    def _verify_response(payload: dict[str, Any]) -> dict[str, Any]:
        drugs = payload.get("identifiedDrugs") or []
        timing = payload.get("timing", "")
        prescription = [{**drug, "timing": timing} for drug in drugs]
        comparison = [
            {
                "identifiedName": drug["name"],
                "prescriptionName": drug["name"],
                "match": True,
                "warning": "",
            }
            for drug in drugs
        ]
        return {
            "overallStatus": "OK",
            "overallStatusColor": "green",
            "summary": f"All {len(drugs)} drug(s) match the prescription.",
            "identifiedDrugs": drugs,
            "prescriptionDrugs": prescription,
            "comparison": comparison,
        }
