"""Runtime settings for talking to AWS."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config


@dataclass(frozen=True)
class ProvisionerSettings:
    """Connection settings passed explicitly from the command line.

    ``max_attempts`` counts the initial call; botocore's ``standard`` retry
    mode only retries throttling, transient 5xx and connection failures.
    """

    profile: Optional[str] = None
    region: Optional[str] = None
    max_attempts: int = 3
    connect_timeout: float = 10.0
    read_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("Timeouts must be positive")

    def boto_config(self) -> Config:
        return Config(
            region_name=self.region,
            retries={"mode": "standard", "max_attempts": self.max_attempts},
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )

    def session(self) -> boto3.session.Session:
        return boto3.Session(profile_name=self.profile, region_name=self.region)


__all__ = ["ProvisionerSettings"]
