# ============================================================================
# AWS CLIENT CONFIGURATION
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - boto3 session and client factory
# PURPOSE: Build SQS/SNS clients from environment configuration
# CREATED: 14 OCT 2026
# ============================================================================
"""
AWS Client Configuration

Credentials come from the standard boto3 chain (environment, profile,
instance role); this module only decides region, endpoint and the retry
policy applied at the remote-call boundary.

Usage:
    config = AwsConfig.from_env()
    sqs_client, sns_client = config.create_clients()
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)


@dataclass
class AwsConfig:
    """AWS client configuration from environment."""

    region_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    profile_name: Optional[str] = None
    max_attempts: int = 5
    retry_mode: str = "standard"
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "AwsConfig":
        """
        Load configuration from environment variables.

            AWS_REGION / AWS_DEFAULT_REGION: Region for both clients
            SIMPLEBUS_AWS_ENDPOINT_URL: Override endpoint (e.g. LocalStack)
            AWS_PROFILE: Named credentials profile
            SIMPLEBUS_AWS_MAX_ATTEMPTS: botocore retry attempts
            SIMPLEBUS_AWS_RETRY_MODE: botocore retry mode (standard/adaptive/legacy)
        """
        return cls(
            region_name=os.environ.get("AWS_REGION", os.environ.get("AWS_DEFAULT_REGION")),
            endpoint_url=os.environ.get("SIMPLEBUS_AWS_ENDPOINT_URL") or None,
            profile_name=os.environ.get("AWS_PROFILE") or None,
            max_attempts=int(os.environ.get("SIMPLEBUS_AWS_MAX_ATTEMPTS", "5")),
            retry_mode=os.environ.get("SIMPLEBUS_AWS_RETRY_MODE", "standard"),
            connect_timeout_seconds=float(os.environ.get("SIMPLEBUS_AWS_CONNECT_TIMEOUT", "10")),
            read_timeout_seconds=float(os.environ.get("SIMPLEBUS_AWS_READ_TIMEOUT", "30")),
        )

    def botocore_config(self) -> Config:
        return Config(
            region_name=self.region_name,
            retries={"max_attempts": self.max_attempts, "mode": self.retry_mode},
            connect_timeout=self.connect_timeout_seconds,
            read_timeout=self.read_timeout_seconds,
        )

    def create_session(self) -> boto3.session.Session:
        return boto3.session.Session(
            profile_name=self.profile_name,
            region_name=self.region_name,
        )

    def create_client(self, service_name: str, session: Optional[boto3.session.Session] = None) -> Any:
        """Create a low-level boto3 client for service_name."""
        session = session or self.create_session()
        logger.info(
            f"Creating {service_name} client "
            f"(region={self.region_name or session.region_name}, "
            f"endpoint={self.endpoint_url or 'default'})"
        )
        return session.client(
            service_name,
            endpoint_url=self.endpoint_url,
            config=self.botocore_config(),
        )

    def create_clients(self) -> Tuple[Any, Any]:
        """(sqs, sns) clients sharing one session."""
        session = self.create_session()
        return self.create_client("sqs", session), self.create_client("sns", session)


__all__ = ["AwsConfig"]
