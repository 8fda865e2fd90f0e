# ============================================================================
# ADDRESS MODEL
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Address parsing and classification
# PURPOSE: One classifier for bare names, ARNs and queue URLs
# CREATED: 12 OCT 2026
# ============================================================================
"""
Address Model

SQS and SNS accept a resource name, an ARN, or (for SQS) a queue URL
interchangeably. Every address string entering the transport is parsed
once into an immutable Address, and the rest of the system branches on
Address.kind / Address.service instead of inspecting strings.

    parse("orders")
        -> Address(kind=UNQUALIFIED, service=UNSPECIFIED, resource_id="orders")

    parse("arn:aws:sns:us-east-1:123456789012:orders")
        -> Address(kind=ARN, service=SNS, resource_id="orders", full_identity=...)

    parse("https://sqs.us-east-1.amazonaws.com/123456789012/billing")
        -> Address(kind=URL, service=SQS, resource_id="billing", full_identity=...)
"""

import re
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, model_validator

from core.contracts import AddressKind, ServiceType
from core.exceptions import MalformedAddress

ARN_PREFIX = "arn:"
ARN_FIELD_COUNT = 6
FIFO_SUFFIX = ".fifo"

_TOPIC_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,256}$")


class Address(BaseModel):
    """
    Parsed, immutable address.

    full_identity holds the ARN or URL exactly as given and is present
    iff the address is qualified.
    """

    kind: AddressKind
    service: ServiceType = ServiceType.UNSPECIFIED
    resource_id: str = Field(..., min_length=1)
    full_identity: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_identity(self) -> "Address":
        if self.kind.is_qualified() and not self.full_identity:
            raise ValueError(f"{self.kind.value} address requires full_identity")
        if not self.kind.is_qualified() and self.full_identity is not None:
            raise ValueError("unqualified address must not carry full_identity")
        return self

    @property
    def is_arn(self) -> bool:
        return self.kind is AddressKind.ARN

    @property
    def is_url(self) -> bool:
        return self.kind is AddressKind.URL

    @property
    def name(self) -> str:
        """Human-readable resource name."""
        return self.resource_id

    def __str__(self) -> str:
        return self.full_identity or self.resource_id

    @classmethod
    def unqualified(cls, name: str) -> "Address":
        return cls(kind=AddressKind.UNQUALIFIED, resource_id=name)

    @classmethod
    def from_arn(cls, arn: str) -> "Address":
        """Parse a string that must be an ARN."""
        address = parse(arn)
        if not address.is_arn:
            raise MalformedAddress(arn, "not an ARN")
        return address


def _parse_arn(raw: str) -> Address:
    # Resource may itself contain colons, so split at most five times
    fields = raw.split(":", ARN_FIELD_COUNT - 1)
    if len(fields) != ARN_FIELD_COUNT:
        raise MalformedAddress(raw, f"expected {ARN_FIELD_COUNT} colon-delimited fields")

    _, partition, service, _region, _account, resource = fields
    if not partition or not service or not resource:
        raise MalformedAddress(raw, "partition, service and resource are required")

    return Address(
        kind=AddressKind.ARN,
        service=ServiceType.from_token(service),
        resource_id=resource,
        full_identity=raw,
    )


def _parse_url(raw: str) -> Address:
    try:
        parts = urlsplit(raw)
        hostname = parts.hostname
    except ValueError as e:
        raise MalformedAddress(raw, str(e)) from e

    if not parts.scheme or not hostname:
        raise MalformedAddress(raw, "URL must be absolute")

    segments = [segment for segment in parts.path.split("/") if segment]
    if not segments:
        raise MalformedAddress(raw, "URL has no resource path")

    return Address(
        kind=AddressKind.URL,
        service=ServiceType.from_token(hostname.split(".")[0]),
        resource_id=segments[-1],
        full_identity=raw,
    )


def parse(raw: str) -> Address:
    """
    Parse and classify an address string.

    Args:
        raw: Bare name, ARN, or absolute URL

    Returns:
        Address

    Raises:
        MalformedAddress: If raw is empty, or looks like an ARN/URL but
            cannot be decomposed
    """
    if raw is None or not raw.strip():
        raise MalformedAddress(str(raw), "address is empty")

    raw = raw.strip()

    if raw[:len(ARN_PREFIX)].lower() == ARN_PREFIX:
        return _parse_arn(raw)

    if "://" in raw:
        return _parse_url(raw)

    return Address.unqualified(raw)


def classify(raw: str) -> AddressKind:
    """Shape of an address string."""
    return parse(raw).kind


def try_parse(raw: str) -> Optional[Address]:
    """Parse, returning None instead of raising for malformed input."""
    try:
        return parse(raw)
    except MalformedAddress:
        return None


def build_arn(
    service: ServiceType,
    resource: str,
    region: str,
    account: str,
    partition: str = "aws",
) -> str:
    """Render the fully-qualified ARN for a resource."""
    return f"arn:{partition}:{ServiceType(service).value}:{region}:{account}:{resource}"


def is_valid_topic_name(name: str) -> bool:
    """
    SNS topic naming rule: up to 256 letters, digits, '_' or '-',
    with an optional '.fifo' suffix.
    """
    if not name:
        return False
    if name.endswith(FIFO_SUFFIX):
        name = name[: -len(FIFO_SUFFIX)]
    return bool(_TOPIC_NAME_PATTERN.match(name))


def is_fifo(name_or_arn: str) -> bool:
    return str(name_or_arn).endswith(FIFO_SUFFIX)


__all__ = [
    "Address",
    "parse",
    "classify",
    "try_parse",
    "build_arn",
    "is_valid_topic_name",
    "is_fifo",
    "FIFO_SUFFIX",
]
