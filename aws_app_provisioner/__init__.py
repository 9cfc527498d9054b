"""Idempotent provisioning of a Cognito identity pool, its role and DynamoDB tables."""

from __future__ import annotations

from .cloud import Boto3CloudClient, CloudClient
from .core import ProvisioningOrchestrator, ProvisioningRun, describe_resource
from .errors import (
    DependencyUnresolvedError,
    FieldNotFoundError,
    InvalidConfigError,
    MissingConfigError,
    ProvisioningError,
    RemoteCallError,
    StateCorruptError,
    StateWriteError,
)
from .models import IdentityPoolOutcome, ResourceStatus, StepResult, TableOutcome
from .policies import PolicyDocument, Statement, assume_role_policy, resource_access_policy
from .state import ResourceStateStore, StateRecord

__all__ = [
    "Boto3CloudClient",
    "CloudClient",
    "DependencyUnresolvedError",
    "FieldNotFoundError",
    "IdentityPoolOutcome",
    "InvalidConfigError",
    "MissingConfigError",
    "PolicyDocument",
    "ProvisioningError",
    "ProvisioningOrchestrator",
    "ProvisioningRun",
    "RemoteCallError",
    "ResourceStateStore",
    "ResourceStatus",
    "StateCorruptError",
    "StateRecord",
    "StateWriteError",
    "Statement",
    "StepResult",
    "TableOutcome",
    "assume_role_policy",
    "describe_resource",
    "resource_access_policy",
]
