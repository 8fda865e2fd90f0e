# ============================================================================
# TRANSPORT EXCEPTIONS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Foundation - Error taxonomy
# PURPOSE: Exceptions surfaced by addressing, reconcilers and transport
# CREATED: 12 OCT 2026
# ============================================================================
"""
Transport Exceptions

All errors carry the operation that failed and the entity involved, so
callers can log them without re-deriving context.

Taxonomy:
    MalformedAddress        - input looks like an ARN/URL but cannot be decomposed
    UnresolvableTopic       - topic name could not be resolved (or created)
    UnresolvableSubscriber  - subscriber queue could not be resolved
    UnsupportedDestination  - address names a service we cannot deliver to
    ReceiveNotSupported     - transport has no input queue
    RemoteOperationFailed   - non-success response from SQS/SNS
    MessageDecodeError      - received body is not a transport envelope
    PolicyDriftWarning      - non-fatal, collected during a policy sweep
"""

from typing import Optional


class SimpleBusError(Exception):
    """Base exception for transport operations."""

    def __init__(self, message: str, operation: str = None, entity_id: str = None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(message)


class MalformedAddress(SimpleBusError, ValueError):
    """Raised when an address resembles an ARN or URL but cannot be parsed."""

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        message = f"Could not parse address '{address}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, operation="parse", entity_id=address)


class UnresolvableTopic(SimpleBusError):
    """Raised when a topic name cannot be resolved to an ARN."""

    def __init__(self, topic: str, operation: str = None):
        self.topic = topic
        super().__init__(
            f"Could not resolve ARN for topic '{topic}'",
            operation=operation,
            entity_id=topic,
        )


class UnresolvableSubscriber(SimpleBusError):
    """Raised when a subscriber queue cannot be resolved to an ARN."""

    def __init__(self, subscriber: str, operation: str = None, reason: str = ""):
        self.subscriber = subscriber
        message = f"Could not resolve ARN for subscriber '{subscriber}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, operation=operation, entity_id=subscriber)


class UnsupportedDestination(SimpleBusError):
    """Raised when a destination names a recognised but unroutable service."""

    def __init__(self, destination: str, service: str):
        self.destination = destination
        self.service = service
        super().__init__(
            f"Unsupported service '{service}' for destination address '{destination}'",
            operation="send",
            entity_id=destination,
        )


class ReceiveNotSupported(SimpleBusError):
    """Raised when receive is called on a transport without an input queue."""

    def __init__(self, address: Optional[str] = None):
        super().__init__(
            "This transport has no input queue; SNS does not support receiving (pulling) messages",
            operation="receive",
            entity_id=address,
        )


class RemoteOperationFailed(SimpleBusError):
    """Raised when SQS or SNS returns a non-success response."""

    def __init__(
        self,
        message: str,
        operation: str = None,
        entity_id: str = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
        error_code: Optional[str] = None,
    ):
        self.status_code = status_code
        self.request_id = request_id
        self.error_code = error_code
        detail = message
        if status_code is not None:
            detail += f". HTTP status code: {status_code}"
        if request_id:
            detail += f"; Request ID: {request_id}"
        super().__init__(detail, operation=operation, entity_id=entity_id)


class MessageDecodeError(SimpleBusError):
    """Raised when a received message body is not a transport envelope."""

    def __init__(self, reason: str, message_id: Optional[str] = None):
        super().__init__(
            f"Could not decode transport message: {reason}",
            operation="decode",
            entity_id=message_id,
        )


class PolicyDriftWarning(Warning):
    """
    A subscription endpoint that could not be policy-checked.

    Never raised by the sweep; instances are logged and collected on the
    sweep result so the one affected subscription is visible to operators.
    """

    def __init__(self, topic_arn: str, endpoint: str, reason: str):
        self.topic_arn = topic_arn
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(
            f"Skipped access policy check for endpoint '{endpoint}' of topic '{topic_arn}': {reason}"
        )


__all__ = [
    "SimpleBusError",
    "MalformedAddress",
    "UnresolvableTopic",
    "UnresolvableSubscriber",
    "UnsupportedDestination",
    "ReceiveNotSupported",
    "RemoteOperationFailed",
    "MessageDecodeError",
    "PolicyDriftWarning",
]
