import base64
from pathlib import Path

import pytest

# Smallest valid PNG: 1x1 transparent pixel.
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture()
def drug_image(tmp_path: Path) -> Path:
    """A drug photo on disk."""
    path = tmp_path / "drug.png"
    path.write_bytes(PNG_BYTES)
    return path


@pytest.fixture()
def prescription_image(tmp_path: Path) -> Path:
    """A prescription photo on disk."""
    path = tmp_path / "prescription.jpg"
    path.write_bytes(JPEG_BYTES)
    return path


@pytest.fixture()
def verify_response() -> dict[str, object]:
    return {
        "overallStatus": "Mismatch detected",
        "overallStatusColor": "red",
        "summary": "One drug does not match the prescription.",
        "identifiedDrugs": [{"name": "Aspirin", "quantity": "10"}],
        "prescriptionDrugs": [{"name": "Ibuprofen", "quantity": "10", "timing": "Evening"}],
        "comparison": [
            {
                "identifiedName": "Aspirin",
                "prescriptionName": "Ibuprofen",
                "match": False,
                "warning": "Drug name differs",
            }
        ],
    }
