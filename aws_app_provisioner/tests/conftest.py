"""Shared fixtures for provisioner tests."""

from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import pytest
import structlog

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeCloudClient:
    """Records every call and answers with the shapes boto3 returns."""

    def __init__(
        self,
        pool_id: str = "us-east-1:abcd",
        account: str = "123",
        region: str = "us-east-1",
    ) -> None:
        self.pool_id = pool_id
        self.account = account
        self.region = region
        self.calls: Dict[str, List[Tuple[Any, ...]]] = {}
        self.failures: Dict[str, Exception] = {}
        self._lock = threading.Lock()

    def count(self, operation: str) -> int:
        return len(self.calls.get(operation, []))

    def _record(self, operation: str, *args: Any) -> None:
        with self._lock:
            self.calls.setdefault(operation, []).append(args)
        if operation in self.failures:
            raise self.failures[operation]

    def create_identity_pool(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        self._record("create_identity_pool", name, dict(config))
        return {"IdentityPoolId": self.pool_id, "IdentityPoolName": name, **config}

    def create_role(self, name: str, trust_policy: Any) -> Dict[str, Any]:
        self._record("create_role", name, trust_policy)
        return {
            "Role": {
                "Path": "/",
                "RoleName": name,
                "Arn": f"arn:aws:iam::{self.account}:role/{name}",
                "CreateDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
            }
        }

    def set_identity_pool_roles(self, pool_id: str, authenticated_role_arn: str) -> None:
        self._record("set_identity_pool_roles", pool_id, authenticated_role_arn)

    def create_table(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        self._record("create_table", name, dict(config))
        return {
            "TableDescription": {
                "TableName": name,
                "TableArn": f"arn:aws:dynamodb:{self.region}:{self.account}:table/{name}",
                "TableStatus": "CREATING",
            }
        }

    def put_role_policy(self, role_name: str, policy_name: str, policy_document: Any) -> None:
        self._record("put_role_policy", role_name, policy_name, policy_document)


@pytest.fixture
def fake_client() -> FakeCloudClient:
    return FakeCloudClient()


@pytest.fixture
def make_resource(tmp_path: Path) -> Callable[..., Path]:
    """Create ``tmp_path/<relative>`` holding a ``config.json``."""

    def factory(relative: str, config: Optional[Mapping[str, Any]] = None) -> Path:
        resource_dir = tmp_path / relative
        resource_dir.mkdir(parents=True, exist_ok=True)
        if config is not None:
            (resource_dir / "config.json").write_text(json.dumps(config), encoding="utf-8")
        return resource_dir

    return factory


@pytest.fixture(autouse=True)
def _reset_structlog() -> Any:
    """Undo logging configuration done by ``cli.main`` so it cannot leak between tests."""

    yield
    structlog.reset_defaults()
