"""IAM policy documents for the authenticated identity-pool role."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

POLICY_VERSION = "2012-10-17"

COGNITO_IDENTITY_PRINCIPAL = "cognito-identity.amazonaws.com"
AUTHENTICATED_SUBJECT = "${cognito-identity.amazonaws.com:sub}"

TABLE_ACCESS_ACTIONS: Tuple[str, ...] = (
    "dynamodb:BatchGetItem",
    "dynamodb:BatchWriteItem",
    "dynamodb:DeleteItem",
    "dynamodb:GetItem",
    "dynamodb:PutItem",
    "dynamodb:Query",
    "dynamodb:UpdateItem",
)


@dataclass(frozen=True)
class Statement:
    """A single ``Statement`` entry of an IAM policy."""

    actions: Tuple[str, ...]
    effect: str = "Allow"
    principal: Optional[Mapping[str, str]] = None
    resources: Tuple[str, ...] = ()
    conditions: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"Effect": self.effect}
        if self.principal:
            body["Principal"] = dict(self.principal)
        body["Action"] = self.actions[0] if len(self.actions) == 1 else list(self.actions)
        if self.resources:
            body["Resource"] = list(self.resources)
        if self.conditions:
            body["Condition"] = {
                operator: dict(values) for operator, values in self.conditions.items()
            }
        return body


@dataclass(frozen=True)
class PolicyDocument:
    """Immutable IAM policy document; regenerate rather than modify."""

    statements: Tuple[Statement, ...]
    version: str = POLICY_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Version": self.version,
            "Statement": [statement.to_dict() for statement in self.statements],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def assume_role_policy(identity_pool_id: str) -> PolicyDocument:
    """Trust policy letting authenticated identities of one pool assume the role."""

    if not identity_pool_id:
        raise ValueError("identity_pool_id must be a non-empty string")

    statement = Statement(
        actions=("sts:AssumeRoleWithWebIdentity",),
        principal={"Federated": COGNITO_IDENTITY_PRINCIPAL},
        conditions={
            "StringEquals": {f"{COGNITO_IDENTITY_PRINCIPAL}:aud": identity_pool_id},
            "ForAnyValue:StringLike": {f"{COGNITO_IDENTITY_PRINCIPAL}:amr": "authenticated"},
        },
    )
    return PolicyDocument(statements=(statement,))


def resource_access_policy(table_arn: str) -> PolicyDocument:
    """CRUD access to *table_arn*, limited to items keyed by the caller's identity.

    The ``dynamodb:LeadingKeys`` condition makes DynamoDB reject any request
    whose partition key differs from the caller's Cognito identity id, so
    per-user row isolation needs no application-side checks.
    """

    if not table_arn:
        raise ValueError("table_arn must be a non-empty string")

    statement = Statement(
        actions=TABLE_ACCESS_ACTIONS,
        resources=(table_arn,),
        conditions={
            "ForAllValues:StringEquals": {"dynamodb:LeadingKeys": [AUTHENTICATED_SUBJECT]},
        },
    )
    return PolicyDocument(statements=(statement,))


__all__ = [
    "AUTHENTICATED_SUBJECT",
    "COGNITO_IDENTITY_PRINCIPAL",
    "POLICY_VERSION",
    "PolicyDocument",
    "Statement",
    "TABLE_ACCESS_ACTIONS",
    "assume_role_policy",
    "resource_access_policy",
]
