"""Data models describing what a provisioning run did."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

StepStatus = Literal["CREATED", "EXISTING", "APPLIED"]


@dataclass
class StepResult:
    """Outcome of a single orchestrator step for one resource."""

    resource: str
    name: str
    status: StepStatus
    identifier: Optional[str] = None
    resource_dir: Optional[str] = None


@dataclass
class IdentityPoolOutcome:
    """Identifiers resolved while provisioning an identity pool and its role."""

    name: str
    pool_id: str
    role_name: str
    role_arn: str
    steps: List[StepResult] = field(default_factory=list)


@dataclass
class TableOutcome:
    """Identifiers resolved while provisioning a table and its access policy."""

    name: str
    table_arn: str
    role_name: str
    policy_name: str
    steps: List[StepResult] = field(default_factory=list)


@dataclass
class ResourceStatus:
    """Cached state found in a resource directory, without contacting AWS."""

    resource_dir: str
    has_config: bool
    pool_id: Optional[str] = None
    role_arn: Optional[str] = None
    table_arn: Optional[str] = None


__all__ = [
    "IdentityPoolOutcome",
    "ResourceStatus",
    "StepResult",
    "StepStatus",
    "TableOutcome",
]
