from collections.abc import Sequence

from medcheck.encoding.models import EncodedImage
from medcheck.logging.logger import Log
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.exceptions import PreconditionError
from medcheck.services.models import IdentifiedDrug, VerificationResult
from medcheck.services.validator import build_verification

DEFAULT_VERIFY_ERROR = "Prescription verification failed."


class VerifyService:
    """Cross-checks identified drugs against a prescription photograph."""

    def __init__(self, client: BaseBackendClient, path: str = "/api/verify") -> None:
        self._client = client
        self._path = path

    async def verify(
        self,
        drugs: Sequence[IdentifiedDrug],
        prescription: EncodedImage,
        timing: str,
    ) -> VerificationResult:
        """Verify ``drugs`` against the prescription for one dosing timing.

        ``timing`` is sent verbatim as the canonical label.

        Raises:
            PreconditionError: on an empty drug list or empty payload, before
                any network call.
            RequestError: if the backend could not be reached.
            ServiceError: on a non-success response.
        """
        if not drugs:
            raise PreconditionError("At least one identified drug is required for verification")
        if not prescription.payload:
            raise PreconditionError("Prescription image payload must not be empty")

        body = await self._client.post_json(
            self._path,
            {
                "identifiedDrugs": [drug.to_payload() for drug in drugs],
                "prescriptionImageData": prescription.payload,
                "prescriptionMimeType": prescription.media_type,
                "timing": timing,
            },
            error_message=DEFAULT_VERIFY_ERROR,
        )
        result = build_verification(body)
        Log.info(
            f"Verification complete: status={result.overall_status!r}, "
            f"{len(result.mismatches)} of {len(result.comparison)} entries mismatched"
        )
        return result
