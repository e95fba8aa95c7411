"""Builds domain models from raw JSON bodies returned by the backend."""

from collections.abc import Callable
from typing import Any, TypeVar

from medcheck.services.exceptions import ServiceResponseError
from medcheck.services.models import (
    ComparisonEntry,
    IdentificationResult,
    IdentifiedDrug,
    PrescriptionDrug,
    VerificationResult,
)

_T = TypeVar("_T")


def build_identification(data: dict[str, Any]) -> IdentificationResult:
    """Validate an identify response.

    A missing or null ``identifiedDrugs`` means nothing was recognized.

    Raises:
        ServiceResponseError: on any shape violation.
    """
    drugs = _build_list(data.get("identifiedDrugs"), "identifiedDrugs", _build_identified_drug)
    raw_response = data.get("rawResponse")
    if raw_response is None:
        raw_response = ""
    if not isinstance(raw_response, str):
        raise ServiceResponseError("'rawResponse' must be a string")
    return IdentificationResult(drugs=drugs, raw_response=raw_response)


def build_verification(data: dict[str, Any]) -> VerificationResult:
    """Validate a verify response and build a VerificationResult.

    Raises:
        ServiceResponseError: on any shape violation.
    """
    overall_status = data.get("overallStatus")
    if not isinstance(overall_status, str) or not overall_status:
        raise ServiceResponseError("'overallStatus' must be a non-empty string")
    return VerificationResult(
        overall_status=overall_status,
        overall_status_color=_optional_str(data, "overallStatusColor"),
        summary=_optional_str(data, "summary"),
        identified_drugs=_build_list(
            data.get("identifiedDrugs"), "identifiedDrugs", _build_identified_drug
        ),
        prescription_drugs=_build_list(
            data.get("prescriptionDrugs"), "prescriptionDrugs", _build_prescription_drug
        ),
        comparison=_build_list(data.get("comparison"), "comparison", _build_comparison_entry),
    )


def build_details(data: dict[str, Any]) -> str:
    details = data.get("details")
    if not isinstance(details, str):
        raise ServiceResponseError("'details' must be a string")
    return details


def _build_list(
    raw: Any, field: str, builder: Callable[[Any, str], _T]
) -> tuple[_T, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ServiceResponseError(f"'{field}' must be a list")
    return tuple(builder(item, f"{field}[{i}]") for i, item in enumerate(raw))


def _build_identified_drug(raw: Any, where: str) -> IdentifiedDrug:
    item = _require_object(raw, where)
    return IdentifiedDrug(
        name=_require_name(item, "name", where),
        quantity=_optional_text(item, "quantity", where),
    )


def _build_prescription_drug(raw: Any, where: str) -> PrescriptionDrug:
    item = _require_object(raw, where)
    return PrescriptionDrug(
        name=_require_name(item, "name", where),
        quantity=_optional_text(item, "quantity", where),
        timing=_optional_text(item, "timing", where),
    )


def _build_comparison_entry(raw: Any, where: str) -> ComparisonEntry:
    item = _require_object(raw, where)
    match = item.get("match")
    if not isinstance(match, bool):
        raise ServiceResponseError(f"{where}: 'match' must be a boolean")
    warning = None if match else _optional_text(item, "warning", where)
    return ComparisonEntry(
        identified_name=_optional_text(item, "identifiedName", where),
        prescription_name=_optional_text(item, "prescriptionName", where),
        match=match,
        warning=warning,
    )


def _require_object(raw: Any, where: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ServiceResponseError(f"{where} must be an object")
    return raw


def _require_name(item: dict[str, Any], key: str, where: str) -> str:
    value = item.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ServiceResponseError(f"{where}: '{key}' must be a non-empty string")
    return value


def _optional_text(item: dict[str, Any], key: str, where: str) -> str:
    # Quantities sometimes come back as bare numbers.
    value = item.get(key)
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ServiceResponseError(f"{where}: '{key}' must be a string")
    return str(value)


def _optional_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ServiceResponseError(f"'{key}' must be a string")
    return value
