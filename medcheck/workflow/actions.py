"""Transition records consumed by the workflow reducer."""

from dataclasses import dataclass

from medcheck.services.models import IdentifiedDrug, VerificationResult
from medcheck.workflow.models import ImageAsset, Timing


@dataclass(frozen=True)
class SelectDrugImage:
    asset: ImageAsset


@dataclass(frozen=True)
class IdentifyStarted:
    pass


@dataclass(frozen=True)
class IdentifySucceeded:
    drugs: tuple[IdentifiedDrug, ...]
    raw_response: str = ""


@dataclass(frozen=True)
class IdentifyFailed:
    message: str


@dataclass(frozen=True)
class ConfirmAndProceed:
    pass


@dataclass(frozen=True)
class Rescan:
    pass


@dataclass(frozen=True)
class SelectPrescriptionImage:
    asset: ImageAsset


@dataclass(frozen=True)
class SelectTiming:
    timing: Timing


@dataclass(frozen=True)
class VerifyStarted:
    pass


@dataclass(frozen=True)
class VerifySucceeded:
    result: VerificationResult


@dataclass(frozen=True)
class VerifyFailed:
    message: str


@dataclass(frozen=True)
class Reset:
    pass


Action = (
    SelectDrugImage
    | IdentifyStarted
    | IdentifySucceeded
    | IdentifyFailed
    | ConfirmAndProceed
    | Rescan
    | SelectPrescriptionImage
    | SelectTiming
    | VerifyStarted
    | VerifySucceeded
    | VerifyFailed
    | Reset
)
