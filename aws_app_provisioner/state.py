"""On-disk state records used to decide whether a resource already exists."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .errors import DependencyUnresolvedError, FieldNotFoundError, StateCorruptError
from .utils import resolve_field, write_json_atomic

PathLike = Union[str, Path]

POOL_STATE_FILE = "pool_info.json"
ROLE_STATE_FILE = "role_info.json"
TABLE_STATE_FILE = "table_info.json"

POOL_ID_FIELD = "IdentityPoolId"
ROLE_ARN_FIELD = "Role.Arn"
TABLE_ARN_FIELD = "TableDescription.TableArn"


@dataclass(frozen=True)
class StateRecord:
    """Cached result of a successful create call."""

    path: Path
    data: Dict[str, Any]


class ResourceStateStore:
    """Reads and writes one kind of state file inside resource directories.

    A missing or empty file means the resource has not been created yet. A
    file that cannot be decoded is reported as :class:`StateCorruptError`
    rather than treated as absent, since re-creating the resource could leave
    a duplicate behind.
    """

    def __init__(self, filename: str) -> None:
        if not filename:
            raise ValueError("State file name must be a non-empty string")
        self.filename = filename

    def path_for(self, resource_dir: PathLike) -> Path:
        return Path(resource_dir) / self.filename

    def load(self, resource_dir: PathLike) -> Optional[StateRecord]:
        """Return the stored record for *resource_dir* or ``None`` if absent."""

        path = self.path_for(resource_dir)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StateCorruptError(
                f"Unable to read state file {path}: {exc}",
                path=path,
                resource_dir=resource_dir,
            ) from exc

        if not raw.strip():
            return None

        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise StateCorruptError(
                f"State file {path} is not valid JSON: {exc}",
                path=path,
                resource_dir=resource_dir,
            ) from exc

        if data is None or data == {} or data == []:
            return None
        if not isinstance(data, dict):
            raise StateCorruptError(
                f"State file {path} must contain a JSON object, found {type(data).__name__}",
                path=path,
                resource_dir=resource_dir,
            )
        return StateRecord(path=path, data=data)

    def save(self, resource_dir: PathLike, record: Mapping[str, Any]) -> StateRecord:
        """Persist *record* for *resource_dir* and return it as a :class:`StateRecord`."""

        path = self.path_for(resource_dir)
        if not record:
            # An empty record reads back as absent.
            raise DependencyUnresolvedError(
                f"Refusing to save an empty record to {path}", resource_dir=resource_dir
            )
        write_json_atomic(path, dict(record))
        # Reload so the returned record matches exactly what later runs will see.
        stored = self.load(resource_dir)
        if stored is None:
            raise StateCorruptError(
                f"State file {path} is empty after saving",
                path=path,
                resource_dir=resource_dir,
            )
        return stored

    @staticmethod
    def extract(record: StateRecord, field_path: str) -> str:
        """Return the non-empty string stored at dotted *field_path*."""

        try:
            value = resolve_field(record.data, field_path)
        except KeyError as exc:
            raise FieldNotFoundError(
                f"Field '{field_path}' not found in {record.path} (missing '{exc.args[0]}')",
                field_path=field_path,
                resource_dir=record.path.parent,
            ) from exc
        if not isinstance(value, str) or not value:
            raise FieldNotFoundError(
                f"Field '{field_path}' in {record.path} is not a non-empty string",
                field_path=field_path,
                resource_dir=record.path.parent,
            )
        return value


__all__ = [
    "POOL_ID_FIELD",
    "POOL_STATE_FILE",
    "ROLE_ARN_FIELD",
    "ROLE_STATE_FILE",
    "ResourceStateStore",
    "StateRecord",
    "TABLE_ARN_FIELD",
    "TABLE_STATE_FILE",
]
