"""Provider boundary: the calls the orchestrator makes against AWS."""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Protocol

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import RemoteCallError
from .policies import PolicyDocument
from .utils import error_code

logger = structlog.get_logger(__name__)


class CloudClient(Protocol):
    """Operations needed to provision an identity pool, role and tables."""

    def create_identity_pool(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def create_role(self, name: str, trust_policy: PolicyDocument) -> Dict[str, Any]:
        ...

    def set_identity_pool_roles(self, pool_id: str, authenticated_role_arn: str) -> None:
        ...

    def create_table(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        ...

    def put_role_policy(
        self, role_name: str, policy_name: str, policy_document: PolicyDocument
    ) -> None:
        ...


def _strip_metadata(response: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in response.items() if key != "ResponseMetadata"}


class Boto3CloudClient:
    """:class:`CloudClient` backed by boto3.

    Clients are created up front so a single instance can be shared by worker
    threads. Retries and timeouts come from the botocore ``Config``; any error
    left after that is raised as :class:`RemoteCallError`.
    """

    def __init__(
        self, session: boto3.session.Session, config: Optional[Config] = None
    ) -> None:
        self._identity = session.client("cognito-identity", config=config)
        self._iam = session.client("iam", config=config)
        self._dynamodb = session.client("dynamodb", config=config)

    def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any:
        logger.debug("aws_call", operation=operation)
        try:
            return func(**kwargs)
        except ClientError as exc:
            code = error_code(exc)
            raise RemoteCallError(
                f"{operation} failed: {exc}", provider_code=code or None, operation=operation
            ) from exc
        except BotoCoreError as exc:
            raise RemoteCallError(f"{operation} failed: {exc}", operation=operation) from exc

    def create_identity_pool(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        response = self._call(
            "create_identity_pool",
            self._identity.create_identity_pool,
            **{**dict(config), "IdentityPoolName": name},
        )
        return _strip_metadata(response)

    def create_role(self, name: str, trust_policy: PolicyDocument) -> Dict[str, Any]:
        response = self._call(
            "create_role",
            self._iam.create_role,
            RoleName=name,
            AssumeRolePolicyDocument=trust_policy.to_json(),
        )
        return _strip_metadata(response)

    def set_identity_pool_roles(self, pool_id: str, authenticated_role_arn: str) -> None:
        self._call(
            "set_identity_pool_roles",
            self._identity.set_identity_pool_roles,
            IdentityPoolId=pool_id,
            Roles={"authenticated": authenticated_role_arn},
        )

    def create_table(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        response = self._call(
            "create_table",
            self._dynamodb.create_table,
            **{**dict(config), "TableName": name},
        )
        return _strip_metadata(response)

    def put_role_policy(
        self, role_name: str, policy_name: str, policy_document: PolicyDocument
    ) -> None:
        self._call(
            "put_role_policy",
            self._iam.put_role_policy,
            RoleName=role_name,
            PolicyName=policy_name,
            PolicyDocument=policy_document.to_json(),
        )


__all__ = ["Boto3CloudClient", "CloudClient"]
