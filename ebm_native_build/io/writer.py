"""
Writer — serialize the build receipt to JSON.

Filesystem layout:
    <root>/tmp/build_receipt.json
"""
import json
from pathlib import Path

from ebm_native_build.io.schema import MatrixReceipt


def write_receipt(receipt: MatrixReceipt, path: Path) -> Path:
    """
    Write *receipt* to *path*, replacing any previous receipt.

    Creates the parent directory if it does not exist.
    Returns the receipt path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(
            receipt.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
    return path


def read_receipt(path: Path) -> MatrixReceipt:
    return MatrixReceipt.model_validate_json(path.read_text())
