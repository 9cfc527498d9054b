"""Tests for generated IAM policy documents."""

from __future__ import annotations

import dataclasses
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from aws_app_provisioner.policies import (
    AUTHENTICATED_SUBJECT,
    assume_role_policy,
    resource_access_policy,
)

TABLE_ARN = "arn:aws:dynamodb:us-east-1:123:table/notes"


def test_assume_role_policy_is_deterministic() -> None:
    """The same pool id always renders the same document."""

    first = assume_role_policy("us-east-1:abcd")
    resource_access_policy(TABLE_ARN)
    second = assume_role_policy("us-east-1:abcd")

    assert first == second
    assert first.to_json() == second.to_json()


def test_assume_role_policy_trusts_authenticated_pool_identities() -> None:
    """Only authenticated identities of the given pool may assume the role."""

    document = assume_role_policy("us-east-1:abcd").to_dict()

    assert document["Version"] == "2012-10-17"
    (statement,) = document["Statement"]
    assert statement["Effect"] == "Allow"
    assert statement["Principal"] == {"Federated": "cognito-identity.amazonaws.com"}
    assert statement["Action"] == "sts:AssumeRoleWithWebIdentity"
    assert statement["Condition"] == {
        "StringEquals": {"cognito-identity.amazonaws.com:aud": "us-east-1:abcd"},
        "ForAnyValue:StringLike": {"cognito-identity.amazonaws.com:amr": "authenticated"},
    }


def test_resource_access_policy_limits_rows_to_the_caller() -> None:
    """Seven CRUD actions on one table, keyed by the caller's identity."""

    document = resource_access_policy(TABLE_ARN).to_dict()

    (statement,) = document["Statement"]
    assert sorted(statement["Action"]) == [
        "dynamodb:BatchGetItem",
        "dynamodb:BatchWriteItem",
        "dynamodb:DeleteItem",
        "dynamodb:GetItem",
        "dynamodb:PutItem",
        "dynamodb:Query",
        "dynamodb:UpdateItem",
    ]
    assert len(statement["Action"]) == 7
    assert statement["Resource"] == [TABLE_ARN]
    assert "Principal" not in statement
    leading_keys = statement["Condition"]["ForAllValues:StringEquals"]["dynamodb:LeadingKeys"]
    assert leading_keys == [AUTHENTICATED_SUBJECT]
    assert AUTHENTICATED_SUBJECT == "${cognito-identity.amazonaws.com:sub}"


def test_policy_json_is_valid_and_keeps_statement_order() -> None:
    """Serialised documents parse back to the same structure."""

    document = resource_access_policy(TABLE_ARN)

    assert json.loads(document.to_json()) == document.to_dict()


def test_policy_documents_are_immutable() -> None:
    """Documents are value objects and cannot be modified in place."""

    document = assume_role_policy("us-east-1:abcd")

    with pytest.raises(dataclasses.FrozenInstanceError):
        document.version = "2008-10-17"  # type: ignore[misc]


@pytest.mark.parametrize("factory", [assume_role_policy, resource_access_policy])
def test_empty_identifiers_are_rejected(factory) -> None:
    """Policies are never rendered for unresolved identifiers."""

    with pytest.raises(ValueError):
        factory("")
