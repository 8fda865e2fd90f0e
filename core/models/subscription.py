# ============================================================================
# SUBSCRIPTION MODELS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Subscription and queue identity value objects
# PURPOSE: Values exchanged between adapters and reconcilers
# CREATED: 13 OCT 2026
# ============================================================================
"""
Subscription Models

Subscription is one row of SNS ListSubscriptionsByTopic. QueueIdentity
bundles the three names of a single SQS queue (name, ARN, URL) because
policy work needs the ARN for the statement and the URL for the API call.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.contracts import SubscriptionProtocol


class Subscription(BaseModel):
    """An SNS subscription. subscription_arn is the handle used for removal."""

    topic_arn: str
    endpoint: str
    protocol: str = SubscriptionProtocol.SQS.value
    subscription_arn: Optional[str] = Field(
        default=None,
        description="Handle returned by Subscribe; 'PendingConfirmation' for unconfirmed endpoints",
    )

    model_config = {"frozen": True}

    @property
    def is_queue_subscription(self) -> bool:
        return self.protocol.lower() == SubscriptionProtocol.SQS.value

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Subscription":
        """Build from an SNS API subscription dict."""
        return cls(
            topic_arn=data.get("TopicArn", ""),
            endpoint=data.get("Endpoint", ""),
            protocol=data.get("Protocol", ""),
            subscription_arn=data.get("SubscriptionArn"),
        )


class QueueIdentity(BaseModel):
    """The name, ARN and URL of one SQS queue."""

    name: str
    arn: str
    url: str

    model_config = {"frozen": True}


__all__ = ["Subscription", "QueueIdentity"]
