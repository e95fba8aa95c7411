"""Pure transition function for the workflow state machine.

``reduce`` never mutates its input; an invalid transition raises and the
caller keeps the previous state.
"""

from collections.abc import Callable
from dataclasses import replace
from typing import Any

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
from medcheck.workflow.exceptions import InvalidTransitionError, WorkflowBusyError
from medcheck.workflow.models import Step, WorkflowState


def reduce(state: WorkflowState, action: Action) -> WorkflowState:
    """Apply one transition and return the next state.

    Raises:
        InvalidTransitionError: if the transition is not valid in ``state``.
        WorkflowBusyError: if the transition needs an idle workflow.
    """
    handler = _HANDLERS.get(type(action).__name__)
    if handler is None:
        raise InvalidTransitionError(f"Unknown transition: {type(action).__name__}")
    return handler(state, action)


def _require_step(state: WorkflowState, step: Step, transition: str) -> None:
    if state.step is not step:
        raise InvalidTransitionError(
            f"{transition} is only valid in step {step.name}, current step is {state.step.name}"
        )


def _require_idle(state: WorkflowState, transition: str) -> None:
    if state.busy:
        raise WorkflowBusyError(f"{transition} refused: an operation is already in progress")


def _require_busy(state: WorkflowState, transition: str) -> None:
    if not state.busy:
        raise InvalidTransitionError(f"{transition} without a pending operation")


def _select_drug_image(state: WorkflowState, action: SelectDrugImage) -> WorkflowState:
    _require_step(state, Step.CAPTURE, "SelectDrugImage")
    _require_idle(state, "SelectDrugImage")
    return replace(state, drug_image=action.asset, result=None, error=None)


def _identify_started(state: WorkflowState, action: IdentifyStarted) -> WorkflowState:
    _require_step(state, Step.CAPTURE, "Identify")
    _require_idle(state, "Identify")
    if state.drug_image is None:
        raise InvalidTransitionError("Identify requires a selected drug image")
    return replace(state, busy=True, error=None, result=None, raw_response="")


def _identify_succeeded(state: WorkflowState, action: IdentifySucceeded) -> WorkflowState:
    _require_step(state, Step.CAPTURE, "IdentifySucceeded")
    _require_busy(state, "IdentifySucceeded")
    return replace(
        state,
        step=Step.CONFIRM,
        identified_drugs=tuple(action.drugs),
        raw_response=action.raw_response,
        busy=False,
    )


def _identify_failed(state: WorkflowState, action: IdentifyFailed) -> WorkflowState:
    _require_step(state, Step.CAPTURE, "IdentifyFailed")
    _require_busy(state, "IdentifyFailed")
    return replace(state, busy=False, error=action.message)


def _confirm_and_proceed(state: WorkflowState, action: ConfirmAndProceed) -> WorkflowState:
    # An empty drug list is allowed through; verify() refuses it later.
    _require_step(state, Step.CONFIRM, "ConfirmAndProceed")
    return replace(state, step=Step.VERIFY, error=None)


def _rescan(state: WorkflowState, action: Rescan) -> WorkflowState:
    _require_step(state, Step.CONFIRM, "Rescan")
    return WorkflowState()


def _select_prescription_image(
    state: WorkflowState, action: SelectPrescriptionImage
) -> WorkflowState:
    _require_step(state, Step.VERIFY, "SelectPrescriptionImage")
    _require_idle(state, "SelectPrescriptionImage")
    return replace(state, prescription_image=action.asset, result=None, error=None)


def _select_timing(state: WorkflowState, action: SelectTiming) -> WorkflowState:
    _require_step(state, Step.VERIFY, "SelectTiming")
    if state.timing is action.timing:
        return state
    return replace(state, timing=action.timing)


def _verify_started(state: WorkflowState, action: VerifyStarted) -> WorkflowState:
    _require_step(state, Step.VERIFY, "Verify")
    _require_idle(state, "Verify")
    if state.prescription_image is None:
        raise InvalidTransitionError("Verify requires a selected prescription image")
    if not state.identified_drugs:
        raise InvalidTransitionError("Verify requires at least one identified drug")
    return replace(state, busy=True, error=None, result=None)


def _verify_succeeded(state: WorkflowState, action: VerifySucceeded) -> WorkflowState:
    _require_step(state, Step.VERIFY, "VerifySucceeded")
    _require_busy(state, "VerifySucceeded")
    return replace(state, result=action.result, busy=False)


def _verify_failed(state: WorkflowState, action: VerifyFailed) -> WorkflowState:
    _require_step(state, Step.VERIFY, "VerifyFailed")
    _require_busy(state, "VerifyFailed")
    return replace(state, busy=False, error=action.message)


def _reset(state: WorkflowState, action: Reset) -> WorkflowState:
    return WorkflowState()


_HANDLERS: dict[str, Callable[[WorkflowState, Any], WorkflowState]] = {
    "SelectDrugImage": _select_drug_image,
    "IdentifyStarted": _identify_started,
    "IdentifySucceeded": _identify_succeeded,
    "IdentifyFailed": _identify_failed,
    "ConfirmAndProceed": _confirm_and_proceed,
    "Rescan": _rescan,
    "SelectPrescriptionImage": _select_prescription_image,
    "SelectTiming": _select_timing,
    "VerifyStarted": _verify_started,
    "VerifySucceeded": _verify_succeeded,
    "VerifyFailed": _verify_failed,
    "Reset": _reset,
}
