"""Turns workflow results into display text.

Backend-provided strings are always treated as plain text. The HTML variant
escapes them before adding line breaks.
"""

import html
from collections.abc import Sequence

from medcheck.services.models import ComparisonEntry, IdentifiedDrug, VerificationResult

NO_DRUGS_IDENTIFIED = "No drugs could be identified. Please rescan the image."
MISMATCH_PREFIX = "Warning: mismatch found!"


def render_identified_drugs(drugs: Sequence[IdentifiedDrug]) -> str:
    if not drugs:
        return NO_DRUGS_IDENTIFIED
    return "\n".join(f"- {_drug_label(drug.name, drug.quantity)}" for drug in drugs)


def render_result(result: VerificationResult) -> str:
    """Render a verification outcome as a plain-text report.

    The overall status is shown verbatim and every mismatching comparison
    entry is followed by its warning line.
    """
    lines = [
        "Verification result",
        f"Overall status: {result.overall_status} [{status_color(result)}]",
    ]
    if result.summary:
        lines.append(result.summary)

    lines.append("")
    lines.append("Identified drugs:")
    lines.extend(
        f"- {_drug_label(drug.name, drug.quantity)}" for drug in result.identified_drugs
    )

    lines.append("")
    lines.append("Drugs on the prescription:")
    for drug in result.prescription_drugs:
        label = _drug_label(drug.name, drug.quantity)
        lines.append(f"- {label} - {drug.timing}" if drug.timing else f"- {label}")

    lines.append("")
    lines.append("Comparison:")
    for entry in result.comparison:
        lines.extend(_comparison_lines(entry))
    return "\n".join(lines)


def status_color(result: VerificationResult) -> str:
    """Return the backend colour token as sent; "gray" when it is missing."""
    return result.overall_status_color.strip().lower() or "gray"


def render_detail_text(details: str) -> str:
    """Normalize line endings so the text renders with its line breaks."""
    return details.replace("\r\n", "\n").replace("\r", "\n")


def render_detail_html(details: str) -> str:
    """Escape detail text for an HTML surface and keep its line breaks."""
    return html.escape(render_detail_text(details)).replace("\n", "<br />")


def _comparison_lines(entry: ComparisonEntry) -> list[str]:
    lines = [
        f"* Identified: {entry.identified_name}",
        f"  Prescription: {entry.prescription_name}",
    ]
    if not entry.match:
        warning = f"{MISMATCH_PREFIX} {entry.warning}" if entry.warning else MISMATCH_PREFIX
        lines.append(f"  {warning}")
    return lines


def _drug_label(name: str, quantity: str) -> str:
    return f"{name} ({quantity})" if quantity else name
