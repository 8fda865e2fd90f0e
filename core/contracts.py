# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Foundation - Address and protocol enums
# PURPOSE: Define the enums shared by addressing, adapters and transport
# LAST_REVIEWED: 12 OCT 2026
# EXPORTS: AddressKind, ServiceType, SubscriptionProtocol, ROUTABLE_SERVICES
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the unified SQS/SNS transport.

Every address that crosses the transport boundary is one of three shapes
(bare name, ARN, queue URL) and names at most one AWS service. These enums
are the vocabulary the rest of the system branches on.
"""

from enum import Enum


# ============================================================================
# ADDRESS ENUMS
# ============================================================================

class AddressKind(str, Enum):
    """
    Shape of an address string.

        UNQUALIFIED -> "orders"
        ARN         -> "arn:aws:sns:us-east-1:123456789012:orders"
        URL         -> "https://sqs.us-east-1.amazonaws.com/123456789012/billing"
    """
    UNQUALIFIED = "unqualified"
    ARN = "arn"
    URL = "url"

    def is_qualified(self) -> bool:
        """Qualified addresses carry their full identity."""
        return self is not AddressKind.UNQUALIFIED


class ServiceType(str, Enum):
    """
    AWS service named by an address.

    SQS and SNS are routable. The remaining members are services we
    recognise from ARN/host tokens but cannot deliver to; anything else
    parses as UNSPECIFIED so new tokens never break parsing.
    """
    UNSPECIFIED = "unspecified"
    SQS = "sqs"
    SNS = "sns"
    LAMBDA = "lambda"
    S3 = "s3"
    EVENTS = "events"
    KINESIS = "kinesis"
    FIREHOSE = "firehose"

    @classmethod
    def from_token(cls, token: str) -> "ServiceType":
        """Map a service token (ARN field or host label) to a ServiceType."""
        try:
            return cls((token or "").strip().lower())
        except ValueError:
            return cls.UNSPECIFIED

    def is_routable(self) -> bool:
        return self in ROUTABLE_SERVICES


ROUTABLE_SERVICES = frozenset({ServiceType.UNSPECIFIED, ServiceType.SQS, ServiceType.SNS})


# ============================================================================
# SUBSCRIPTION ENUMS
# ============================================================================

class SubscriptionProtocol(str, Enum):
    """SNS delivery protocols we care about."""
    SQS = "sqs"
    HTTP = "http"
    HTTPS = "https"
    LAMBDA = "lambda"
    EMAIL = "email"


__all__ = [
    "AddressKind",
    "ServiceType",
    "SubscriptionProtocol",
    "ROUTABLE_SERVICES",
]
