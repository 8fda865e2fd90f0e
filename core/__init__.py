# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core module initialization
# PURPOSE: Export core contracts, models and exceptions
# LAST_REVIEWED: 14 OCT 2026
# ============================================================================

from core.contracts import AddressKind, ServiceType, SubscriptionProtocol
from core.exceptions import (
    SimpleBusError,
    MalformedAddress,
    UnresolvableTopic,
    UnresolvableSubscriber,
    UnsupportedDestination,
    ReceiveNotSupported,
    RemoteOperationFailed,
    MessageDecodeError,
    PolicyDriftWarning,
)
from core.models import (
    Address,
    Subscription,
    QueueIdentity,
    Policy,
    PolicyStatement,
    TransportMessage,
)

__all__ = [
    # Enums
    "AddressKind",
    "ServiceType",
    "SubscriptionProtocol",
    # Errors
    "SimpleBusError",
    "MalformedAddress",
    "UnresolvableTopic",
    "UnresolvableSubscriber",
    "UnsupportedDestination",
    "ReceiveNotSupported",
    "RemoteOperationFailed",
    "MessageDecodeError",
    "PolicyDriftWarning",
    # Models
    "Address",
    "Subscription",
    "QueueIdentity",
    "Policy",
    "PolicyStatement",
    "TransportMessage",
]
