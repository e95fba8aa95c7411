from medcheck.encoding.models import EncodedImage
from medcheck.logging.logger import Log
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.exceptions import PreconditionError
from medcheck.services.models import IdentificationResult
from medcheck.services.validator import build_identification

DEFAULT_IDENTIFY_ERROR = "Drug identification failed."


class IdentifyService:
    """Sends a drug photograph to the recognition endpoint."""

    def __init__(self, client: BaseBackendClient, path: str = "/api/identify") -> None:
        self._client = client
        self._path = path

    async def identify(self, image: EncodedImage) -> IdentificationResult:
        """Recognize medications on an encoded drug photograph.

        Returns an empty drug list when nothing was recognized. Does not touch
        workflow state; the caller applies the result.

        Raises:
            PreconditionError: if the payload is empty.
            RequestError: if the backend could not be reached.
            ServiceError: on a non-success response.
        """
        if not image.payload:
            raise PreconditionError("Drug image payload must not be empty")

        body = await self._client.post_json(
            self._path,
            {"imageData": image.payload, "mimeType": image.media_type},
            error_message=DEFAULT_IDENTIFY_ERROR,
        )
        result = build_identification(body)
        Log.info(f"Identification complete: {len(result.drugs)} drugs recognized")
        return result
