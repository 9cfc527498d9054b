"""Idempotent orchestration of identity pool, role and table provisioning."""
from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import structlog

from .cloud import CloudClient
from .errors import (
    DependencyUnresolvedError,
    FieldNotFoundError,
    InvalidConfigError,
    MissingConfigError,
    ProvisioningError,
)
from .models import IdentityPoolOutcome, ResourceStatus, StepResult, TableOutcome
from .policies import assume_role_policy, resource_access_policy
from .state import (
    POOL_ID_FIELD,
    POOL_STATE_FILE,
    ROLE_ARN_FIELD,
    ROLE_STATE_FILE,
    TABLE_ARN_FIELD,
    TABLE_STATE_FILE,
    ResourceStateStore,
    StateRecord,
)
from .utils import write_json_atomic

PathLike = Union[str, Path]

CONFIG_FILE = "config.json"
ASSUME_ROLE_POLICY_FILE = "assume_role_policy.json"
ROLE_POLICY_FILE = "role_policy.json"

logger = structlog.get_logger(__name__)


def resource_name(resource_dir: PathLike) -> str:
    """Name of the resource configured in *resource_dir* (its basename)."""

    name = Path(resource_dir).resolve().name
    if not name:
        raise ValueError(f"Cannot derive a resource name from '{resource_dir}'")
    return name


def authenticated_role_name(pool_name: str) -> str:
    return f"{pool_name}_cognito_authenticated"


def table_policy_name(table_name: str) -> str:
    return f"{table_name}_table_access"


def load_resource_config(resource_dir: PathLike) -> Dict[str, Any]:
    """Read ``config.json`` from *resource_dir*; its schema belongs to AWS."""

    path = Path(resource_dir) / CONFIG_FILE
    try:
        raw = path.read_text(encoding="utf-8")
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
        raise MissingConfigError(
            f"Configuration file {path} does not exist", resource_dir=resource_dir
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidConfigError(
            f"Unable to read configuration file {path}: {exc}", resource_dir=resource_dir
        ) from exc

    try:
        config = json.loads(raw)
    except ValueError as exc:
        raise InvalidConfigError(
            f"Configuration file {path} is not valid JSON: {exc}", resource_dir=resource_dir
        ) from exc
    if not isinstance(config, dict):
        raise InvalidConfigError(
            f"Configuration file {path} must contain a JSON object", resource_dir=resource_dir
        )
    return config


@contextmanager
def _step(operation: str, resource_dir: PathLike) -> Iterator[None]:
    try:
        yield
    except ProvisioningError as exc:
        raise exc.add_context(resource_dir=resource_dir, operation=operation)


def _require(record: StateRecord, field_path: str, description: str) -> str:
    try:
        return ResourceStateStore.extract(record, field_path)
    except FieldNotFoundError as exc:
        raise DependencyUnresolvedError(
            f"Could not resolve {description}: {exc.message}",
            resource_dir=record.path.parent,
        ) from exc


@dataclass
class ProvisioningRun:
    """Everything a full application run provisioned."""

    pool: Optional[IdentityPoolOutcome] = None
    tables: List[TableOutcome] = field(default_factory=list)

    @property
    def steps(self) -> List[StepResult]:
        steps: List[StepResult] = list(self.pool.steps) if self.pool else []
        for table in self.tables:
            steps.extend(table.steps)
        return steps


class ProvisioningOrchestrator:
    """Creates each resource at most once and re-applies the cheap associations.

    Whether a resource exists is decided solely by its state file. A record
    that is present is trusted as-is; configuration changes made after the
    resource was created are not detected.
    """

    def __init__(
        self,
        client: CloudClient,
        *,
        pool_store: Optional[ResourceStateStore] = None,
        role_store: Optional[ResourceStateStore] = None,
        table_store: Optional[ResourceStateStore] = None,
    ) -> None:
        self.client = client
        self.pool_store = pool_store or ResourceStateStore(POOL_STATE_FILE)
        self.role_store = role_store or ResourceStateStore(ROLE_STATE_FILE)
        self.table_store = table_store or ResourceStateStore(TABLE_STATE_FILE)

    def provision_identity_pool(self, resource_dir: PathLike) -> IdentityPoolOutcome:
        """Ensure the identity pool in *resource_dir* and its authenticated role exist.

        The pool and the role are each created only when their state file is
        absent. Binding the role to the pool is repeated on every run.
        """

        pool_dir = Path(resource_dir).resolve()
        with _step("load_config", pool_dir):
            config = load_resource_config(pool_dir)
        name = resource_name(pool_dir)
        log = logger.bind(resource_dir=str(pool_dir), pool=name)
        steps: List[StepResult] = []

        with _step("create_identity_pool", pool_dir):
            record = self.pool_store.load(pool_dir)
            if record is None:
                log.info("identity_pool.creating")
                response = self.client.create_identity_pool(name, config)
                record = self.pool_store.save(pool_dir, response)
                status = "CREATED"
            else:
                log.info("identity_pool.exists", state_file=str(record.path))
                status = "EXISTING"
            pool_id = _require(record, POOL_ID_FIELD, "identity pool id")
        steps.append(StepResult("identity-pool", name, status, pool_id, str(pool_dir)))

        role_name = authenticated_role_name(name)
        with _step("create_role", pool_dir):
            role_record = self.role_store.load(pool_dir)
            if role_record is None:
                trust_policy = assume_role_policy(pool_id)
                write_json_atomic(pool_dir / ASSUME_ROLE_POLICY_FILE, trust_policy.to_dict())
                log.info("role.creating", role=role_name, pool_id=pool_id)
                response = self.client.create_role(role_name, trust_policy)
                role_record = self.role_store.save(pool_dir, response)
                status = "CREATED"
            else:
                log.info("role.exists", role=role_name)
                status = "EXISTING"
            role_arn = _require(role_record, ROLE_ARN_FIELD, "authenticated role ARN")
        steps.append(StepResult("role", role_name, status, role_arn, str(pool_dir)))

        with _step("set_identity_pool_roles", pool_dir):
            log.info("identity_pool.binding_role", pool_id=pool_id, role_arn=role_arn)
            self.client.set_identity_pool_roles(pool_id, role_arn)
        steps.append(StepResult("pool-roles", name, "APPLIED", role_arn, str(pool_dir)))

        return IdentityPoolOutcome(
            name=name, pool_id=pool_id, role_name=role_name, role_arn=role_arn, steps=steps
        )

    def provision_table(self, resource_dir: PathLike, pool_name: str) -> TableOutcome:
        """Ensure the table in *resource_dir* exists and grant the pool's role access.

        The access policy is regenerated and attached on every run, whether or
        not the table was just created.
        """

        table_dir = Path(resource_dir).resolve()
        if not pool_name:
            raise DependencyUnresolvedError(
                "An identity pool name is required to attach the table policy",
                resource_dir=table_dir,
                operation="put_role_policy",
            )
        with _step("load_config", table_dir):
            config = load_resource_config(table_dir)
        name = resource_name(table_dir)
        log = logger.bind(resource_dir=str(table_dir), table=name)
        steps: List[StepResult] = []

        with _step("create_table", table_dir):
            record = self.table_store.load(table_dir)
            if record is None:
                log.info("table.creating")
                response = self.client.create_table(name, config)
                record = self.table_store.save(table_dir, response)
                status = "CREATED"
            else:
                log.info("table.exists", state_file=str(record.path))
                status = "EXISTING"
            table_arn = _require(record, TABLE_ARN_FIELD, "table ARN")
        steps.append(StepResult("table", name, status, table_arn, str(table_dir)))

        role_name = authenticated_role_name(pool_name)
        policy_name = table_policy_name(name)
        with _step("put_role_policy", table_dir):
            policy = resource_access_policy(table_arn)
            write_json_atomic(table_dir / ROLE_POLICY_FILE, policy.to_dict())
            log.info("table.attaching_policy", role=role_name, policy=policy_name)
            self.client.put_role_policy(role_name, policy_name, policy)
        steps.append(StepResult("table-policy", policy_name, "APPLIED", role_name, str(table_dir)))

        return TableOutcome(
            name=name,
            table_arn=table_arn,
            role_name=role_name,
            policy_name=policy_name,
            steps=steps,
        )

    def provision_tables(
        self, resource_dirs: Iterable[PathLike], pool_name: str, *, max_workers: int = 1
    ) -> List[TableOutcome]:
        """Provision independent tables, optionally on a thread pool.

        Directories are de-duplicated so no two workers share a state file.
        Sequential runs stop at the first failure; concurrent runs let every
        submitted table finish and then raise the first failure in input order.
        """

        unique_dirs = list(dict.fromkeys(Path(d).resolve() for d in resource_dirs))
        if max_workers <= 1 or len(unique_dirs) <= 1:
            return [self.provision_table(d, pool_name) for d in unique_dirs]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self.provision_table, d, pool_name) for d in unique_dirs]

        outcomes: List[TableOutcome] = []
        first_error: Optional[BaseException] = None
        for future in futures:
            exc = future.exception()
            if exc is not None:
                logger.error("table.failed", error=str(exc))
                if first_error is None:
                    first_error = exc
                continue
            outcomes.append(future.result())
        if first_error is not None:
            raise first_error
        return outcomes

    def provision_application(
        self,
        pool_dir: PathLike,
        table_dirs: Iterable[PathLike] = (),
        *,
        max_workers: int = 1,
    ) -> ProvisioningRun:
        """Provision the identity pool first, then every table against its role."""

        run = ProvisioningRun()
        run.pool = self.provision_identity_pool(pool_dir)
        run.tables = self.provision_tables(table_dirs, run.pool.name, max_workers=max_workers)
        return run

    def describe(self, resource_dir: PathLike) -> ResourceStatus:
        return describe_resource(
            resource_dir,
            pool_store=self.pool_store,
            role_store=self.role_store,
            table_store=self.table_store,
        )


def describe_resource(
    resource_dir: PathLike,
    *,
    pool_store: Optional[ResourceStateStore] = None,
    role_store: Optional[ResourceStateStore] = None,
    table_store: Optional[ResourceStateStore] = None,
) -> ResourceStatus:
    """Report cached state for *resource_dir* without calling AWS."""

    path = Path(resource_dir)
    status = ResourceStatus(resource_dir=str(path), has_config=(path / CONFIG_FILE).is_file())
    stores = (
        (pool_store or ResourceStateStore(POOL_STATE_FILE), POOL_ID_FIELD, "pool_id"),
        (role_store or ResourceStateStore(ROLE_STATE_FILE), ROLE_ARN_FIELD, "role_arn"),
        (table_store or ResourceStateStore(TABLE_STATE_FILE), TABLE_ARN_FIELD, "table_arn"),
    )
    with _step("describe", path):
        for store, field_path, attribute in stores:
            record = store.load(path)
            if record is not None:
                setattr(status, attribute, ResourceStateStore.extract(record, field_path))
    return status


def print_steps(steps: Iterable[StepResult]) -> None:
    """Pretty-print step results to stdout."""

    steps = list(steps)
    if not steps:
        print("Nothing to provision.")
        return

    header = f"{'Resource':<14} {'Status':<9} {'Name':<40} Identifier"
    print(header)
    print("-" * len(header))
    for step in steps:
        name = (step.name[:37] + "...") if len(step.name) > 40 else step.name
        print(f"{step.resource:<14} {step.status:<9} {name:<40} {step.identifier or ''}")


def print_statuses(statuses: Iterable[ResourceStatus]) -> None:
    """Pretty-print cached resource state to stdout."""

    for status in statuses:
        print(status.resource_dir)
        print(f"  config:   {'present' if status.has_config else 'missing'}")
        for label, value in (
            ("pool id", status.pool_id),
            ("role arn", status.role_arn),
            ("table arn", status.table_arn),
        ):
            if value:
                print(f"  {label + ':':<9} {value}")
        if not (status.pool_id or status.role_arn or status.table_arn):
            print("  no resources provisioned")


__all__ = [
    "ASSUME_ROLE_POLICY_FILE",
    "CONFIG_FILE",
    "ProvisioningOrchestrator",
    "ProvisioningRun",
    "ROLE_POLICY_FILE",
    "authenticated_role_name",
    "describe_resource",
    "load_resource_config",
    "print_statuses",
    "print_steps",
    "resource_name",
    "table_policy_name",
]
