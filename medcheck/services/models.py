from dataclasses import dataclass


@dataclass(frozen=True)
class IdentifiedDrug:
    """A medication recognized on the drug photograph."""

    name: str
    quantity: str = ""

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "quantity": self.quantity}


@dataclass(frozen=True)
class PrescriptionDrug:
    """A medication read from the prescription photograph."""

    name: str
    quantity: str = ""
    timing: str = ""


@dataclass(frozen=True)
class ComparisonEntry:
    """One paired judgment between an identified and a prescribed drug.

    ``warning`` is None for matching entries and a string (possibly empty)
    for mismatches.
    """

    identified_name: str
    prescription_name: str
    match: bool
    warning: str | None = None


@dataclass(frozen=True)
class IdentificationResult:
    """Output of the identify endpoint."""

    drugs: tuple[IdentifiedDrug, ...] = ()
    raw_response: str = ""


@dataclass(frozen=True)
class VerificationResult:
    """Normalized verification outcome consumed by the rendering layer."""

    overall_status: str
    overall_status_color: str = ""
    summary: str = ""
    identified_drugs: tuple[IdentifiedDrug, ...] = ()
    prescription_drugs: tuple[PrescriptionDrug, ...] = ()
    comparison: tuple[ComparisonEntry, ...] = ()

    @property
    def mismatches(self) -> tuple[ComparisonEntry, ...]:
        return tuple(entry for entry in self.comparison if not entry.match)
