import asyncio
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from medcheck.encoding.image_encoder import ImageEncoder
from medcheck.services.exceptions import PreconditionError, RequestError, ServiceError
from medcheck.services.models import (
    ComparisonEntry,
    IdentificationResult,
    IdentifiedDrug,
    VerificationResult,
)
from medcheck.workflow.controller import (
    DETAILS_NETWORK_ERROR,
    IDENTIFY_NETWORK_ERROR,
    IMAGE_READ_ERROR,
    UNEXPECTED_ERROR,
    VERIFY_NETWORK_ERROR,
    WorkflowController,
)
from medcheck.workflow.exceptions import InvalidTransitionError, WorkflowBusyError
from medcheck.workflow.models import Step, Timing, WorkflowState

_ASPIRIN = IdentifiedDrug(name="Aspirin", quantity="10 tablets")
_MISMATCH_RESULT = VerificationResult(
    overall_status="Mismatch detected",
    overall_status_color="red",
    summary="Check the prescription.",
    identified_drugs=(IdentifiedDrug("Aspirin", "10"),),
    comparison=(ComparisonEntry("Aspirin", "Ibuprofen", False, "Drug name differs"),),
)


def _make_controller(
    *,
    identify: Any = None,
    verify: Any = None,
    details: Any = None,
    timeout_seconds: float = 5,
) -> WorkflowController:
    identify_service = MagicMock()
    identify_service.identify = AsyncMock(
        side_effect=identify,
        return_value=IdentificationResult(drugs=(_ASPIRIN,), raw_response="raw"),
    )
    verify_service = MagicMock()
    verify_service.verify = AsyncMock(side_effect=verify, return_value=_MISMATCH_RESULT)
    detail_service = MagicMock()
    detail_service.fetch = AsyncMock(side_effect=details, return_value="Pain reliever.")
    return WorkflowController(
        encoder=ImageEncoder(),
        identify_service=identify_service,
        verify_service=verify_service,
        detail_service=detail_service,
        timeout_seconds=timeout_seconds,
    )


async def _to_verify_step(
    controller: WorkflowController, drug_image: Path, prescription_image: Path
) -> None:
    controller.select_drug_image(drug_image)
    await controller.identify()
    controller.confirm_and_proceed()
    controller.select_prescription_image(prescription_image)


class TestIdentify:
    def test_success_moves_to_confirm(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        state = asyncio.run(controller.identify())
        assert state.step is Step.CONFIRM
        assert state.identified_drugs == (_ASPIRIN,)
        assert state.raw_response == "raw"
        assert not state.busy

    def test_sends_encoded_image(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        encoded = controller._identify_service.identify.await_args.args[0]
        assert encoded.media_type == "image/png"
        assert encoded.payload

    def test_service_error_message_is_shown(self, drug_image: Path) -> None:
        controller = _make_controller(identify=ServiceError("unrecognizable image"))
        controller.select_drug_image(drug_image)
        state = asyncio.run(controller.identify())
        assert state.step is Step.CAPTURE
        assert state.error == "unrecognizable image"
        assert not state.busy

    def test_network_error_message(self, drug_image: Path) -> None:
        controller = _make_controller(identify=RequestError("refused"))
        controller.select_drug_image(drug_image)
        state = asyncio.run(controller.identify())
        assert state.error == IDENTIFY_NETWORK_ERROR

    def test_unreadable_image_message(self, tmp_path: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(tmp_path / "gone.png")
        state = asyncio.run(controller.identify())
        assert state.error == IMAGE_READ_ERROR
        controller._identify_service.identify.assert_not_called()

    def test_without_image_raises_and_keeps_state(self) -> None:
        controller = _make_controller()
        before = controller.state
        with pytest.raises(PreconditionError):
            asyncio.run(controller.identify())
        assert controller.state is before

    def test_outside_capture_raises(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        before = controller.state
        with pytest.raises(InvalidTransitionError):
            asyncio.run(controller.identify())
        assert controller.state is before

    def test_retry_after_failure(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller._identify_service.identify.side_effect = [
            ServiceError("try again"),
            IdentificationResult(drugs=(_ASPIRIN,)),
        ]
        controller.select_drug_image(drug_image)
        assert asyncio.run(controller.identify()).error == "try again"
        state = asyncio.run(controller.identify())
        assert state.step is Step.CONFIRM
        assert state.error is None

    def test_reentrant_identify_is_refused(self, drug_image: Path) -> None:
        async def scenario() -> WorkflowState:
            gate = asyncio.Event()

            async def slow_identify(image: Any) -> IdentificationResult:
                await gate.wait()
                return IdentificationResult(drugs=(_ASPIRIN,))

            controller = _make_controller(identify=slow_identify)
            controller.select_drug_image(drug_image)
            first = asyncio.create_task(controller.identify())
            await asyncio.sleep(0)
            assert controller.state.busy
            with pytest.raises(WorkflowBusyError):
                await controller.identify()
            gate.set()
            return await first

        state = asyncio.run(scenario())
        assert state.step is Step.CONFIRM
        assert not state.busy

    def test_hung_request_times_out(self, drug_image: Path) -> None:
        async def hang(image: Any) -> IdentificationResult:
            await asyncio.Event().wait()
            return IdentificationResult()

        controller = _make_controller(identify=hang, timeout_seconds=0.05)
        controller.select_drug_image(drug_image)
        state = asyncio.run(controller.identify())
        assert state.error == IDENTIFY_NETWORK_ERROR
        assert not state.busy

    def test_unexpected_error_clears_busy_and_propagates(self, drug_image: Path) -> None:
        controller = _make_controller(identify=RuntimeError("boom"))
        controller.select_drug_image(drug_image)
        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(controller.identify())
        assert not controller.state.busy
        assert controller.state.error == UNEXPECTED_ERROR

        controller._identify_service.identify.side_effect = None
        assert asyncio.run(controller.identify()).step is Step.CONFIRM

    def test_result_after_reset_is_discarded(self, drug_image: Path) -> None:
        async def scenario() -> WorkflowController:
            gate = asyncio.Event()

            async def slow_identify(image: Any) -> IdentificationResult:
                await gate.wait()
                return IdentificationResult(drugs=(_ASPIRIN,))

            controller = _make_controller(identify=slow_identify)
            controller.select_drug_image(drug_image)
            task = asyncio.create_task(controller.identify())
            await asyncio.sleep(0)
            controller.reset()
            gate.set()
            await task
            return controller

        controller = asyncio.run(scenario())
        assert controller.state == WorkflowState()


class TestConfirm:
    def test_confirm_and_proceed(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        assert controller.confirm_and_proceed().step is Step.VERIFY

    def test_confirm_with_empty_list_is_allowed(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller._identify_service.identify.return_value = IdentificationResult()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        assert controller.confirm_and_proceed().step is Step.VERIFY

    def test_rescan_returns_to_capture(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        state = controller.rescan()
        assert state == WorkflowState()
        assert len(controller.previews) == 0


class TestVerify:
    def test_success_stores_result(self, drug_image: Path, prescription_image: Path) -> None:
        controller = _make_controller()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        controller.select_timing("Evening")
        state = asyncio.run(controller.verify())
        assert state.result is _MISMATCH_RESULT
        assert not state.busy
        drugs, encoded, timing = controller._verify_service.verify.await_args.args
        assert drugs == (_ASPIRIN,)
        assert encoded.media_type == "image/jpeg"
        assert timing == "Evening"

    def test_default_timing_is_morning(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        asyncio.run(controller.verify())
        assert controller._verify_service.verify.await_args.args[2] == "Morning"

    def test_service_error_is_recorded(self, drug_image: Path, prescription_image: Path) -> None:
        controller = _make_controller(verify=ServiceError("prescription unreadable"))
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        state = asyncio.run(controller.verify())
        assert state.error == "prescription unreadable"
        assert state.result is None
        assert state.step is Step.VERIFY

    def test_network_error_is_recorded(self, drug_image: Path, prescription_image: Path) -> None:
        controller = _make_controller(verify=RequestError("down"))
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        assert asyncio.run(controller.verify()).error == VERIFY_NETWORK_ERROR

    def test_unexpected_error_clears_busy_and_propagates(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller(verify=KeyError("overallStatus"))
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        with pytest.raises(KeyError):
            asyncio.run(controller.verify())
        assert not controller.state.busy
        assert controller.state.error == UNEXPECTED_ERROR
        assert controller.state.step is Step.VERIFY

    def test_without_prescription_image_raises(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.identify())
        controller.confirm_and_proceed()
        before = controller.state
        with pytest.raises(PreconditionError):
            asyncio.run(controller.verify())
        assert controller.state is before

    def test_with_empty_drug_list_raises(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller()
        controller._identify_service.identify.return_value = IdentificationResult()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        with pytest.raises(PreconditionError, match="identified drug"):
            asyncio.run(controller.verify())
        controller._verify_service.verify.assert_not_called()

    def test_new_prescription_image_clears_result(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        asyncio.run(controller.verify())
        state = controller.select_prescription_image(prescription_image)
        assert state.result is None


class TestSelectTiming:
    def test_select_timing_twice_is_idempotent(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        first = controller.select_timing("Evening")
        second = controller.select_timing("Evening")
        assert first is second
        assert second.timing is Timing.EVENING

    def test_accepts_localized_label(self, drug_image: Path, prescription_image: Path) -> None:
        controller = _make_controller()
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        assert controller.select_timing("眠前").timing is Timing.BEFORE_SLEEP

    def test_invalid_in_capture(self) -> None:
        controller = _make_controller()
        with pytest.raises(InvalidTransitionError):
            controller.select_timing(Timing.EVENING)


class TestResetAndPreviews:
    def test_superseded_drug_preview_is_released(self, drug_image: Path) -> None:
        controller = _make_controller()
        first = controller.select_drug_image(drug_image).drug_image
        second = controller.select_drug_image(drug_image).drug_image
        assert first is not None and second is not None
        assert first.preview_handle not in controller.previews
        assert second.preview_handle in controller.previews

    def test_failed_selection_releases_new_handle(self, prescription_image: Path) -> None:
        controller = _make_controller()
        with pytest.raises(InvalidTransitionError):
            controller.select_prescription_image(prescription_image)
        assert len(controller.previews) == 0

    def test_reset_from_verify_clears_everything(
        self, drug_image: Path, prescription_image: Path
    ) -> None:
        controller = _make_controller(verify=ServiceError("bad"))
        asyncio.run(_to_verify_step(controller, drug_image, prescription_image))
        controller.select_timing(Timing.EVENING)
        asyncio.run(controller.verify())
        state = controller.reset()
        assert state == WorkflowState()
        assert state.timing is Timing.MORNING
        assert len(controller.previews) == 0

    def test_reset_from_capture(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        assert controller.reset() == WorkflowState()
        assert len(controller.previews) == 0

    def test_aclose_releases_previews(self, drug_image: Path) -> None:
        controller = _make_controller()
        controller.select_drug_image(drug_image)
        asyncio.run(controller.aclose())
        assert len(controller.previews) == 0


class TestDrugDetails:
    def test_lookup_fills_panel(self) -> None:
        controller = _make_controller()
        panel = asyncio.run(controller.lookup_drug_details("Aspirin"))
        assert panel.is_open
        assert not panel.pending
        assert panel.title == "Details for Aspirin"
        assert panel.content == "Pain reliever."

    def test_service_failure_is_shown_in_panel(self) -> None:
        controller = _make_controller(details=ServiceError("unknown drug"))
        panel = asyncio.run(controller.lookup_drug_details("Xyz"))
        assert panel.content == "Failed to fetch information: unknown drug"
        assert not panel.pending
        assert controller.state.error is None

    def test_network_failure_is_shown_in_panel(self) -> None:
        controller = _make_controller(details=RequestError("down"))
        panel = asyncio.run(controller.lookup_drug_details("Aspirin"))
        assert panel.content == DETAILS_NETWORK_ERROR
        assert not panel.pending

    def test_unexpected_error_closes_pending_and_propagates(self) -> None:
        controller = _make_controller(details=RuntimeError("boom"))
        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(controller.lookup_drug_details("Aspirin"))
        assert not controller.details.pending
        assert controller.details.content == f"Failed to fetch information: {UNEXPECTED_ERROR}"

    def test_stale_response_is_discarded(self) -> None:
        async def scenario() -> Any:
            gates = {"Aspirin": asyncio.Event(), "Ibuprofen": asyncio.Event()}

            async def fetch(name: str) -> str:
                await gates[name].wait()
                return f"details for {name}"

            controller = _make_controller(details=fetch)
            slow = asyncio.create_task(controller.lookup_drug_details("Aspirin"))
            await asyncio.sleep(0)
            fast = asyncio.create_task(controller.lookup_drug_details("Ibuprofen"))
            await asyncio.sleep(0)
            gates["Ibuprofen"].set()
            await fast
            gates["Aspirin"].set()
            await slow
            return controller.details

        panel = asyncio.run(scenario())
        assert panel.drug_name == "Ibuprofen"
        assert panel.content == "details for Ibuprofen"
        assert not panel.pending

    def test_lookup_runs_while_identify_is_busy(self, drug_image: Path) -> None:
        async def scenario() -> tuple[Any, WorkflowState]:
            gate = asyncio.Event()

            async def slow_identify(image: Any) -> IdentificationResult:
                await gate.wait()
                return IdentificationResult(drugs=(_ASPIRIN,))

            controller = _make_controller(identify=slow_identify)
            controller.select_drug_image(drug_image)
            task = asyncio.create_task(controller.identify())
            await asyncio.sleep(0)
            panel = await controller.lookup_drug_details("Aspirin")
            busy_state = controller.state
            gate.set()
            await task
            return panel, busy_state

        panel, busy_state = asyncio.run(scenario())
        assert panel.content == "Pain reliever."
        assert busy_state.busy

    def test_close_details_drops_pending_lookup(self) -> None:
        async def scenario() -> Any:
            gate = asyncio.Event()

            async def fetch(name: str) -> str:
                await gate.wait()
                return "late"

            controller = _make_controller(details=fetch)
            task = asyncio.create_task(controller.lookup_drug_details("Aspirin"))
            await asyncio.sleep(0)
            controller.close_details()
            gate.set()
            await task
            return controller.details

        panel = asyncio.run(scenario())
        assert not panel.is_open
        assert panel.content == ""
