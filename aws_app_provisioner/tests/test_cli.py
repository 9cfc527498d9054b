"""Tests for the command line entry point."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from aws_app_provisioner import cli

from conftest import FakeCloudClient


@pytest.fixture
def patched_client(monkeypatch: pytest.MonkeyPatch, fake_client: FakeCloudClient) -> FakeCloudClient:
    monkeypatch.setattr(cli, "Boto3CloudClient", lambda session, config: fake_client)
    return fake_client


def test_up_provisions_pool_and_tables(
    make_resource, patched_client: FakeCloudClient, tmp_path: Path, capsys
) -> None:
    """``up`` prints a summary and exports step results."""

    pool_dir = make_resource("pools/acme", {"AllowUnauthenticatedIdentities": False})
    table_dir = make_resource("tables/notes", {"KeySchema": []})
    export = tmp_path / "steps.json"

    exit_code = cli.main(
        ["--region", "us-east-1", "--json", str(export), "up", str(pool_dir), str(table_dir)]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "acme_cognito_authenticated" in out
    assert "notes_table_access" in out
    steps = json.loads(export.read_text(encoding="utf-8"))
    assert [step["resource"] for step in steps] == [
        "identity-pool",
        "role",
        "pool-roles",
        "table",
        "table-policy",
    ]
    assert patched_client.count("create_table") == 1


def test_table_command_requires_pool(make_resource, patched_client: FakeCloudClient) -> None:
    """``table`` refuses to run without ``--pool``."""

    table_dir = make_resource("tables/notes", {"KeySchema": []})

    with pytest.raises(SystemExit):
        cli.main(["--region", "us-east-1", "table", str(table_dir)])

    assert patched_client.calls == {}


def test_missing_config_exits_non_zero(make_resource, patched_client: FakeCloudClient, capsys) -> None:
    """Failures print the error with its context and return 1."""

    pool_dir = make_resource("pools/acme")

    exit_code = cli.main(["--region", "us-east-1", "identity-pool", str(pool_dir)])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "Error: [MISSING_CONFIG]" in err
    assert str(pool_dir) in err
    assert patched_client.calls == {}


def test_status_reads_state_only(make_resource, capsys) -> None:
    """``status`` works without AWS access."""

    table_dir = make_resource("tables/notes", {"KeySchema": []})
    (table_dir / "table_info.json").write_text(
        json.dumps({"TableDescription": {"TableArn": "arn:aws:dynamodb:us-east-1:123:table/notes"}}),
        encoding="utf-8",
    )

    exit_code = cli.main(["status", str(table_dir)])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "arn:aws:dynamodb:us-east-1:123:table/notes" in out
    assert "config:   present" in out


def test_unwritable_policy_file_exits_non_zero(
    make_resource, patched_client: FakeCloudClient, capsys
) -> None:
    """A file that cannot be written is reported like any other provisioning error."""

    table_dir = make_resource("tables/notes", {"KeySchema": []})
    (table_dir / "role_policy.json").mkdir()

    exit_code = cli.main(["--region", "us-east-1", "table", str(table_dir), "--pool", "acme"])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "Error: [STATE_WRITE]" in err
    assert "operation=put_role_policy" in err
    assert patched_client.count("put_role_policy") == 0


def test_unwritable_export_exits_non_zero(
    make_resource, patched_client: FakeCloudClient, tmp_path: Path, capsys
) -> None:
    """A failed step export returns 1 after provisioning succeeded."""

    pool_dir = make_resource("pools/acme", {"AllowUnauthenticatedIdentities": False})
    export = tmp_path / "steps.json"
    export.mkdir()

    exit_code = cli.main(
        ["--region", "us-east-1", "--json", str(export), "identity-pool", str(pool_dir)]
    )

    assert exit_code == 1
    assert "Failed to export step results" in capsys.readouterr().err
