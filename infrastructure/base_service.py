# ============================================================================
# BASE SERVICE ADAPTERS - ERROR HANDLING AND CONTRACTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - Base adapter patterns
# PURPOSE: Common error translation, identity caching and adapter contracts
# CREATED: 13 OCT 2026
# ============================================================================
"""
Base Service Adapters

Abstract base classes for the two AWS collaborators:
- QueueService: SQS (create/send/receive/delete, queue ids, policy attributes)
- TopicService: SNS (create/publish, lookup, subscriptions)

Both share CloudService, which provides:
- An identity cache owned by the adapter instance
- Error context manager translating botocore errors to RemoteOperationFailed
- Response status checking (non-2xx is a failure even without an exception)

Concrete boto3 adapters live in infrastructure/sqs.py and
infrastructure/sns.py; tests substitute in-memory subclasses.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from botocore.exceptions import BotoCoreError, ClientError

from core.contracts import ServiceType
from core.exceptions import RemoteOperationFailed, SimpleBusError
from core.models import Address, QueueIdentity, Subscription, parse
from infrastructure.identity_cache import ResourceIdentityCache

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR_CODES = frozenset({
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
    "NotFound",
    "NotFoundException",
    "ResourceNotFoundException",
})


def is_not_found(error: ClientError) -> bool:
    """Whether a ClientError means the resource does not exist."""
    code = error.response.get("Error", {}).get("Code", "")
    return code in NOT_FOUND_ERROR_CODES


def remote_failure(
    error: Exception,
    operation: str,
    entity_id: Optional[str] = None,
) -> RemoteOperationFailed:
    """Build a RemoteOperationFailed from a botocore error."""
    response = getattr(error, "response", None) or {}
    metadata = response.get("ResponseMetadata", {})
    details = response.get("Error", {})

    message = f"{operation} failed"
    if entity_id:
        message += f" for '{entity_id}'"
    if details:
        message += f": {details.get('Code', 'Unknown')} - {details.get('Message', '')}".rstrip(" -")
    else:
        message += f": {error}"

    return RemoteOperationFailed(
        message,
        operation=operation,
        entity_id=entity_id,
        status_code=metadata.get("HTTPStatusCode"),
        request_id=metadata.get("RequestId"),
        error_code=details.get("Code"),
    )


@dataclass
class ReceivedMessage:
    """A raw message pulled from SQS."""
    body: str
    receipt_handle: str
    message_id: Optional[str] = None


class CloudService(ABC):
    """
    Abstract base adapter with common patterns.

    Provides:
    - identities: name -> ARN cache bound to this adapter instance
    - Error context manager for consistent error handling
    - Response status validation
    """

    service_type: ClassVar[ServiceType] = ServiceType.UNSPECIFIED

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.identities = ResourceIdentityCache(
            self.service_type,
            lookup=self.lookup_identity,
            create=self.create_identity,
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @abstractmethod
    def lookup_identity(self, name: str) -> Optional[str]:
        """Exact-match lookup of a resource ARN by name; None if absent."""

    @abstractmethod
    def create_identity(self, name: str) -> str:
        """Create the named resource (idempotently) and return its ARN."""

    def resolve_arn(
        self,
        address: Union[str, Address],
        create_if_absent: bool = False,
    ) -> Optional[str]:
        """
        Resolve any address shape to an ARN.

        ARNs are returned as-is without a remote call; names and URLs go
        through the identity cache.
        """
        if not isinstance(address, Address):
            address = parse(address)
        if address.is_arn:
            return address.full_identity
        return self.identities.resolve(address.resource_id, create_if_absent=create_if_absent)

    def close(self) -> None:
        """Release the underlying client. Adapters without one do nothing."""

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        """
        Context manager for consistent error handling.

        botocore errors are logged with context and re-raised as
        RemoteOperationFailed carrying status code and request id.

        Example:
            with self._error_context("publish", topic_arn):
                response = self._client.publish(...)
        """
        try:
            yield
        except SimpleBusError:
            raise
        except ClientError as e:
            failure = remote_failure(e, operation, entity_id)
            self.logger.error(str(failure))
            raise failure from e
        except BotoCoreError as e:
            failure = remote_failure(e, operation, entity_id)
            self.logger.error(str(failure))
            raise failure from e

    def _check_response(
        self,
        response: Dict[str, Any],
        operation: str,
        entity_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Raise RemoteOperationFailed for a non-2xx response."""
        metadata = (response or {}).get("ResponseMetadata", {})
        status = metadata.get("HTTPStatusCode", 200)
        if not 200 <= status < 300:
            raise RemoteOperationFailed(
                f"{operation} failed for '{entity_id}'",
                operation=operation,
                entity_id=entity_id,
                status_code=status,
                request_id=metadata.get("RequestId"),
            )
        return response


# ============================================================================
# QUEUE SERVICE (SQS)
# ============================================================================

class QueueService(CloudService):
    """Point-to-point queue adapter contract."""

    service_type = ServiceType.SQS

    @abstractmethod
    def create_queue(self, name: str) -> QueueIdentity:
        """Create a queue (idempotent for identical attributes)."""

    @abstractmethod
    def get_queue_id(self, name: str) -> Optional[Tuple[str, str]]:
        """(url, arn) of the named queue, or None if it does not exist."""

    @abstractmethod
    def get_queue_url(self, name: str, owner_account: Optional[str] = None) -> Optional[str]:
        """URL of the named queue, or None if it does not exist."""

    @abstractmethod
    def send(self, queue_url: str, body: str, group_id: Optional[str] = None) -> Optional[str]:
        """Send a message body; returns the message id."""

    @abstractmethod
    def receive(self, queue_url: str, wait_seconds: int = 1) -> Optional[ReceivedMessage]:
        """Receive at most one message."""

    @abstractmethod
    def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        """Delete (complete) a received message."""

    @abstractmethod
    def change_visibility(self, queue_url: str, receipt_handle: str, timeout_seconds: int) -> None:
        """Change a received message's visibility timeout."""

    @abstractmethod
    def delete_queue(self, queue_url: str) -> None:
        """Delete a queue."""

    @abstractmethod
    def get_policy_attributes(self, queue_url: str) -> Dict[str, str]:
        """Queue attributes relevant to access policy (may lack 'Policy')."""

    @abstractmethod
    def set_policy_attributes(self, queue_url: str, attributes: Dict[str, str]) -> None:
        """Write queue attributes (whole-value replace)."""

    def lookup_identity(self, name: str) -> Optional[str]:
        queue_id = self.get_queue_id(name)
        return queue_id[1] if queue_id else None

    def create_identity(self, name: str) -> str:
        return self.create_queue(name).arn

    def identify(
        self,
        address: Union[str, Address],
        create_if_absent: bool = False,
    ) -> Optional[QueueIdentity]:
        """
        Resolve the name, ARN and URL of a queue from any address shape.

        Returns None if the queue does not exist (and was not created).
        """
        if not isinstance(address, Address):
            address = parse(address)
        name = address.resource_id

        if address.is_arn:
            arn = address.full_identity
            owner = arn.split(":")[4] or None
            url = self.get_queue_url(name, owner_account=owner)
        elif address.is_url:
            url = address.full_identity
            arn = self.identities.resolve(name, create_if_absent=create_if_absent)
        else:
            arn = self.identities.resolve(name, create_if_absent=create_if_absent)
            url = self.get_queue_url(name) if arn else None

        if not arn or not url:
            return None
        return QueueIdentity(name=name, arn=arn, url=url)


# ============================================================================
# TOPIC SERVICE (SNS)
# ============================================================================

class TopicService(CloudService):
    """Publish/subscribe topic adapter contract."""

    service_type = ServiceType.SNS

    @abstractmethod
    def create_topic(self, name: str) -> str:
        """Create a topic (idempotent) and return its ARN."""

    @abstractmethod
    def find_topic_arn(self, name: str) -> Optional[str]:
        """Exact-match lookup by name, scanning every page; None if absent."""

    @abstractmethod
    def publish(
        self,
        topic_arn: str,
        payload: str,
        group_id: Optional[str] = None,
        deduplication_id: Optional[str] = None,
    ) -> Optional[str]:
        """Publish a payload; returns the message id."""

    @abstractmethod
    def list_subscriptions(self, topic_arn: str) -> List[Subscription]:
        """All subscriptions of a topic, every page."""

    @abstractmethod
    def subscribe(self, topic_arn: str, protocol: str, endpoint: str) -> str:
        """Subscribe an endpoint; idempotent for identical arguments."""

    @abstractmethod
    def unsubscribe(self, subscription_arn: str) -> None:
        """Remove a subscription by handle."""

    @abstractmethod
    def set_subscription_attribute(self, subscription_arn: str, key: str, value: str) -> None:
        """Set one subscription attribute."""

    @abstractmethod
    def delete_topic(self, topic_arn: str) -> None:
        """Delete a topic."""

    def lookup_identity(self, name: str) -> Optional[str]:
        return self.find_topic_arn(name)

    def create_identity(self, name: str) -> str:
        return self.create_topic(name)


__all__ = [
    "CloudService",
    "QueueService",
    "TopicService",
    "ReceivedMessage",
    "remote_failure",
    "is_not_found",
]
