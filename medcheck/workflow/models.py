from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from medcheck.services.models import IdentifiedDrug, VerificationResult


class Step(Enum):
    """Screen of the two-stage workflow. Confirm is mandatory between the others."""

    CAPTURE = "capture"
    CONFIRM = "confirm"
    VERIFY = "verify"


class Timing(str, Enum):
    """Dosing period; the value is the canonical label sent to the backend."""

    MORNING = "Morning"
    MIDDAY = "Midday"
    EVENING = "Evening"
    BEFORE_SLEEP = "BeforeSleep"
    UNSPECIFIED = "Unspecified"

    @property
    def display_label(self) -> str:
        return _DISPLAY_LABELS[self]

    @classmethod
    def parse(cls, label: "str | Timing") -> "Timing":
        """Resolve a canonical value, member name or localized display label.

        Raises:
            ValueError: if the label is not recognized.
        """
        if isinstance(label, Timing):
            return label
        key = label.strip()
        for timing in cls:
            if key == timing.value or key.upper() == timing.name:
                return timing
        timing = _LOCALIZED_LABELS.get(key) or _LOCALIZED_LABELS.get(key.lower())
        if timing is None:
            raise ValueError(f"Unknown timing label: {label!r}")
        return timing


_DISPLAY_LABELS: dict[Timing, str] = {
    Timing.MORNING: "Morning",
    Timing.MIDDAY: "Midday",
    Timing.EVENING: "Evening",
    Timing.BEFORE_SLEEP: "Before sleep",
    Timing.UNSPECIFIED: "No specific timing",
}

_LOCALIZED_LABELS: dict[str, Timing] = {
    "morning": Timing.MORNING,
    "midday": Timing.MIDDAY,
    "noon": Timing.MIDDAY,
    "evening": Timing.EVENING,
    "before sleep": Timing.BEFORE_SLEEP,
    "bedtime": Timing.BEFORE_SLEEP,
    "no specific timing": Timing.UNSPECIFIED,
    "unspecified": Timing.UNSPECIFIED,
    "朝": Timing.MORNING,
    "昼": Timing.MIDDAY,
    "夕": Timing.EVENING,
    "眠前": Timing.BEFORE_SLEEP,
    "タイミング指定なし": Timing.UNSPECIFIED,
}


@dataclass(frozen=True)
class ImageAsset:
    """A captured photograph held client-side for the current cycle."""

    path: Path
    preview_handle: str
    media_type: str

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class WorkflowState:
    """Immutable snapshot of the workflow. ``WorkflowState()`` is the reset state."""

    step: Step = Step.CAPTURE
    drug_image: ImageAsset | None = None
    prescription_image: ImageAsset | None = None
    identified_drugs: tuple[IdentifiedDrug, ...] = ()
    raw_response: str = ""
    timing: Timing = Timing.MORNING
    result: VerificationResult | None = None
    error: str | None = None
    busy: bool = False

    @property
    def active_image(self) -> ImageAsset | None:
        if self.step is Step.CAPTURE:
            return self.drug_image
        if self.step is Step.VERIFY:
            return self.prescription_image
        return None

    @property
    def can_identify(self) -> bool:
        return self.step is Step.CAPTURE and self.drug_image is not None and not self.busy

    @property
    def can_verify(self) -> bool:
        return (
            self.step is Step.VERIFY
            and self.prescription_image is not None
            and bool(self.identified_drugs)
            and not self.busy
        )


@dataclass(frozen=True)
class DetailPanel:
    """State of the on-demand drug details surface."""

    drug_name: str = ""
    title: str = ""
    content: str = ""
    is_open: bool = False
    pending: bool = False
    token: int = 0
