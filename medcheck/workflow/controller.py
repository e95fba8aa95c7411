"""Client-side orchestration of the identify -> confirm -> verify workflow."""

import asyncio
from collections.abc import Awaitable
from dataclasses import replace
from pathlib import Path
from typing import TypeVar

from medcheck.config.settings import Settings
from medcheck.encoding.exceptions import EncodingError
from medcheck.encoding.image_encoder import ImageEncoder, guess_media_type
from medcheck.logging.logger import Log
from medcheck.services.client_base import BaseBackendClient
from medcheck.services.drug_detail import DrugDetailService
from medcheck.services.exceptions import (
    PreconditionError,
    RequestError,
    ServiceError,
)
from medcheck.services.factory import BackendClientFactory
from medcheck.services.identify import IdentifyService
from medcheck.services.verify import VerifyService
from medcheck.workflow.actions import (
    Action,
    ConfirmAndProceed,
    IdentifyFailed,
    IdentifyStarted,
    IdentifySucceeded,
    Rescan,
    Reset,
    SelectDrugImage,
    SelectPrescriptionImage,
    SelectTiming,
    VerifyFailed,
    VerifyStarted,
    VerifySucceeded,
)
from medcheck.workflow.exceptions import InvalidTransitionError
from medcheck.workflow.models import DetailPanel, ImageAsset, Timing, WorkflowState
from medcheck.workflow.previews import PreviewRegistry
from medcheck.workflow.reducer import reduce

_T = TypeVar("_T")

IDENTIFY_NETWORK_ERROR = (
    "An error occurred while identifying the drug. Please check your network connection."
)
VERIFY_NETWORK_ERROR = (
    "An error occurred while verifying the prescription. Please check your network connection."
)
DETAILS_NETWORK_ERROR = (
    "An error occurred while fetching information. Please check your network connection."
)
IMAGE_READ_ERROR = "The selected image could not be read. Please choose another image."
DETAILS_LOADING = "Fetching information..."
UNEXPECTED_ERROR = "An unexpected error occurred. Please try again or start over."

_OPERATION_ERRORS = (
    EncodingError,
    RequestError,
    ServiceError,
    PreconditionError,
    asyncio.TimeoutError,
)


class WorkflowController:
    """Owns the workflow state and coordinates the encoder and service clients.

    Every state change goes through the pure reducer. Guard violations on a
    trigger (wrong step, missing image, busy) raise PreconditionError and
    leave the state untouched; failures while an operation runs become the
    user-visible ``state.error`` message.
    """

    def __init__(
        self,
        *,
        encoder: ImageEncoder,
        identify_service: IdentifyService,
        verify_service: VerifyService,
        detail_service: DrugDetailService,
        previews: PreviewRegistry | None = None,
        timeout_seconds: float = 30,
        client: BaseBackendClient | None = None,
    ) -> None:
        self._encoder = encoder
        self._identify_service = identify_service
        self._verify_service = verify_service
        self._detail_service = detail_service
        self._previews = previews if previews is not None else PreviewRegistry()
        self._timeout_seconds = timeout_seconds
        self._client = client
        self._state = WorkflowState()
        self._details = DetailPanel()
        # Bumped on every reset so completions from an abandoned cycle are dropped.
        self._cycle = 0

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def details(self) -> DetailPanel:
        return self._details

    @property
    def previews(self) -> PreviewRegistry:
        return self._previews

    def select_drug_image(self, path: Path, media_type: str | None = None) -> WorkflowState:
        return self._select_image(path, media_type, SelectDrugImage)

    def select_prescription_image(
        self, path: Path, media_type: str | None = None
    ) -> WorkflowState:
        return self._select_image(path, media_type, SelectPrescriptionImage)

    def select_timing(self, value: Timing | str) -> WorkflowState:
        return self._dispatch(SelectTiming(Timing.parse(value)))

    def confirm_and_proceed(self) -> WorkflowState:
        if not self._state.identified_drugs:
            Log.warning("Proceeding to verification with no identified drugs")
        return self._dispatch(ConfirmAndProceed())

    def rescan(self) -> WorkflowState:
        state = self._dispatch(Rescan())
        self._cycle += 1
        return state

    def reset(self) -> WorkflowState:
        self._cycle += 1
        return self._dispatch(Reset())

    async def identify(self) -> WorkflowState:
        """Encode the drug photo, call the identify endpoint and apply the result.

        Raises:
            PreconditionError: if identification cannot start in the current state.
        """
        asset = self._state.drug_image
        if asset is None:
            raise InvalidTransitionError("Identify requires a selected drug image")
        self._dispatch(IdentifyStarted())
        cycle = self._cycle
        try:
            encoded = await self._bounded(self._encoder.encode(asset))
            result = await self._bounded(self._identify_service.identify(encoded))
        except _OPERATION_ERRORS as exc:
            message = self._describe_failure(exc, IDENTIFY_NETWORK_ERROR)
            Log.error(f"Identification failed: {exc}")
            if self._is_current(cycle):
                self._dispatch(IdentifyFailed(message))
            return self._state
        except Exception:
            Log.error("Identification aborted by an unexpected error")
            if self._is_current(cycle):
                self._dispatch(IdentifyFailed(UNEXPECTED_ERROR))
            raise

        if self._is_current(cycle):
            self._dispatch(IdentifySucceeded(result.drugs, result.raw_response))
        return self._state

    async def verify(self) -> WorkflowState:
        """Encode the prescription photo, call the verify endpoint and store the result.

        Raises:
            PreconditionError: if verification cannot start in the current state.
        """
        asset = self._state.prescription_image
        if asset is None:
            raise InvalidTransitionError("Verify requires a selected prescription image")
        state = self._dispatch(VerifyStarted())
        cycle = self._cycle
        try:
            encoded = await self._bounded(self._encoder.encode(asset))
            result = await self._bounded(
                self._verify_service.verify(state.identified_drugs, encoded, state.timing.value)
            )
        except _OPERATION_ERRORS as exc:
            message = self._describe_failure(exc, VERIFY_NETWORK_ERROR)
            Log.error(f"Verification failed: {exc}")
            if self._is_current(cycle):
                self._dispatch(VerifyFailed(message))
            return self._state
        except Exception:
            Log.error("Verification aborted by an unexpected error")
            if self._is_current(cycle):
                self._dispatch(VerifyFailed(UNEXPECTED_ERROR))
            raise

        if self._is_current(cycle):
            self._dispatch(VerifySucceeded(result))
        return self._state

    async def lookup_drug_details(self, drug_name: str) -> DetailPanel:
        """Open the detail panel for ``drug_name`` and fill it when the lookup ends.

        Runs independently of the main busy flag. Only the most recent lookup
        may update the panel; older completions are discarded.
        """
        token = self._details.token + 1
        self._details = DetailPanel(
            drug_name=drug_name,
            title=f"Details for {drug_name}",
            content=DETAILS_LOADING,
            is_open=True,
            pending=True,
            token=token,
        )
        try:
            content = await self._bounded(self._detail_service.fetch(drug_name))
        except ServiceError as exc:
            content = f"Failed to fetch information: {exc.message}"
        except PreconditionError as exc:
            content = f"Failed to fetch information: {exc}"
        except (RequestError, asyncio.TimeoutError) as exc:
            Log.warning(f"Drug detail lookup for {drug_name!r} failed: {exc}")
            content = DETAILS_NETWORK_ERROR
        except Exception:
            Log.error(f"Drug detail lookup for {drug_name!r} aborted by an unexpected error")
            self._finish_details(token, f"Failed to fetch information: {UNEXPECTED_ERROR}")
            raise

        return self._finish_details(token, content)

    def _finish_details(self, token: int, content: str) -> DetailPanel:
        if token != self._details.token:
            Log.debug(f"Discarding stale detail response for {self._details.drug_name!r}")
            return self._details
        self._details = replace(self._details, content=content, pending=False)
        return self._details

    def close_details(self) -> DetailPanel:
        self._details = DetailPanel(token=self._details.token + 1)
        return self._details

    async def aclose(self) -> None:
        """Release every preview handle and the backend transport."""
        released = self._previews.release_all()
        Log.debug(f"Released {released} preview handle(s) on close")
        if self._client is not None:
            await self._client.aclose()

    def _select_image(
        self,
        path: Path,
        media_type: str | None,
        action_type: type[SelectDrugImage] | type[SelectPrescriptionImage],
    ) -> WorkflowState:
        path = Path(path)
        handle = self._previews.create(path)
        asset = ImageAsset(
            path=path,
            preview_handle=handle,
            media_type=media_type or guess_media_type(path),
        )
        try:
            return self._dispatch(action_type(asset))
        except PreconditionError:
            self._previews.release(handle)
            raise

    def _dispatch(self, action: Action) -> WorkflowState:
        previous = self._state
        self._state = reduce(previous, action)
        self._release_superseded(previous, self._state)
        if previous.step is not self._state.step:
            Log.info(f"Workflow step {previous.step.name} -> {self._state.step.name}")
        return self._state

    def _release_superseded(self, previous: WorkflowState, current: WorkflowState) -> None:
        for old, new in (
            (previous.drug_image, current.drug_image),
            (previous.prescription_image, current.prescription_image),
        ):
            if old is not None and old is not new:
                self._previews.release(old.preview_handle)

    def _is_current(self, cycle: int) -> bool:
        if cycle != self._cycle:
            Log.info("Discarding result of an operation from a reset workflow cycle")
            return False
        return True

    async def _bounded(self, operation: Awaitable[_T]) -> _T:
        return await asyncio.wait_for(operation, timeout=self._timeout_seconds)

    @staticmethod
    def _describe_failure(exc: Exception, network_message: str) -> str:
        if isinstance(exc, ServiceError):
            return exc.message
        if isinstance(exc, EncodingError):
            return IMAGE_READ_ERROR
        if isinstance(exc, (RequestError, asyncio.TimeoutError)):
            return network_message
        return str(exc)


def build_controller(settings: Settings) -> WorkflowController:
    """Build a WorkflowController wired to the configured backend."""
    client = BackendClientFactory.create(settings)
    return WorkflowController(
        encoder=ImageEncoder(),
        identify_service=IdentifyService(client, settings.identify_path),
        verify_service=VerifyService(client, settings.verify_path),
        detail_service=DrugDetailService(client, settings.drug_info_path),
        timeout_seconds=settings.request_timeout_seconds,
        client=client,
    )
