"""Shared helpers for reading and writing provisioning files."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Union

from botocore.exceptions import ClientError

from .errors import StateWriteError

PathLike = Union[str, Path]


def error_code(exc: Exception) -> str:
    """Return the AWS error code from a botocore exception, if present."""

    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return ""


def write_json_atomic(path: PathLike, payload: Any) -> Path:
    """Write ``payload`` as JSON to *path* so readers never see a partial file.

    The document is written to a sibling temporary file, fsynced and then
    renamed over the target. Values JSON cannot encode natively (timestamps in
    provider responses) are stringified. File-system failures are raised as
    :class:`StateWriteError`.
    """

    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
        )
    except OSError as exc:
        raise StateWriteError(f"Unable to write {target}: {exc}", path=target) from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, default=str)
            fh.write("\n")
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, target)
    except BaseException as exc:
        # KeyboardInterrupt included: the target is either untouched or complete.
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        if isinstance(exc, OSError):
            raise StateWriteError(f"Unable to write {target}: {exc}", path=target) from exc
        raise
    return target


def resolve_field(data: Mapping[str, Any], field_path: str) -> Any:
    """Walk a dotted ``field_path`` through nested mappings.

    Raises :class:`KeyError` naming the first missing segment.
    """

    current: Any = data
    for segment in field_path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            raise KeyError(segment)
        current = current[segment]
    return current


__all__ = ["error_code", "resolve_field", "write_json_atomic"]
