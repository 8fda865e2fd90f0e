# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 14 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

Value objects for the unified transport: addresses, subscriptions,
queue identities, access policies and transport messages.
"""

from core.models.address import (
    Address,
    parse,
    classify,
    try_parse,
    build_arn,
    is_valid_topic_name,
    is_fifo,
)
from core.models.subscription import Subscription, QueueIdentity
from core.models.policy import Policy, PolicyStatement
from core.models.transport_message import TransportMessage

__all__ = [
    # Addressing
    "Address",
    "parse",
    "classify",
    "try_parse",
    "build_arn",
    "is_valid_topic_name",
    "is_fifo",
    # Subscriptions
    "Subscription",
    "QueueIdentity",
    # Policy
    "Policy",
    "PolicyStatement",
    # Messages
    "TransportMessage",
]
