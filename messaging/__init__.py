# ============================================================================
# MESSAGING MODULE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Transport, subscriptions and access policy
# PURPOSE: Send/receive over SQS and SNS for the host bus
# CREATED: 16 OCT 2026
# ============================================================================
"""
Messaging Module

Provides the unified SQS/SNS transport and the two reconcilers it owns.

Usage:
    from messaging import UnifiedTransport

    transport = UnifiedTransport.from_env()
    transport.initialize()
    transport.send("orders", message)
"""

from .access_policy import AccessPolicyReconciler, CheckedTopicSet, PolicySweepResult
from .serializer import TransportMessageSerializer, WireEnvelope
from .subscriptions import SubscriptionReconciler
from .transport import UnifiedTransport

__all__ = [
    "UnifiedTransport",
    "SubscriptionReconciler",
    "AccessPolicyReconciler",
    "CheckedTopicSet",
    "PolicySweepResult",
    "TransportMessageSerializer",
    "WireEnvelope",
]
