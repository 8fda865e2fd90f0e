# ============================================================================
# SUBSCRIPTION RECONCILER
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Idempotent SNS -> SQS subscription management
# PURPOSE: Register/unregister queues as topic subscribers
# CREATED: 15 OCT 2026
# ============================================================================
"""
Subscription Reconciler

register() and unregister() are safe to repeat:
    - SNS Subscribe returns the existing subscription for identical
      (topic, protocol, endpoint), so a second register is a no-op
    - unregister of a subscription that does not exist (or whose topic or
      queue does not exist) returns quietly

Concurrent register/unregister on the same pair resolve at SNS; whichever
call lands last wins. There is no local lock.
"""

import logging
from typing import List, Optional

from core.config import RAW_MESSAGE_DELIVERY_ATTRIBUTE, TransportOptions
from core.contracts import ServiceType, SubscriptionProtocol
from core.exceptions import UnresolvableSubscriber, UnresolvableTopic
from core.logging import log_context
from core.models import Subscription, parse
from infrastructure.base_service import QueueService, TopicService

logger = logging.getLogger(__name__)


class SubscriptionReconciler:
    """Adds and removes SQS queues as SNS topic subscribers."""

    def __init__(
        self,
        queues: QueueService,
        topics: TopicService,
        options: Optional[TransportOptions] = None,
    ):
        self.queues = queues
        self.topics = topics
        self.options = options or TransportOptions()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_subscriber_arn(self, subscriber: str, operation: str) -> Optional[str]:
        """
        ARN of a subscriber queue, or None if the queue does not exist.

        Queues are never created here: a queue must exist to subscribe.
        """
        address = parse(subscriber)
        if address.is_arn and address.service is not ServiceType.SQS:
            raise UnresolvableSubscriber(
                subscriber,
                operation,
                reason=f"only SQS subscribers are supported, got '{address.service.value}'",
            )
        return self.queues.resolve_arn(address)

    def resolve_topic_arn(self, topic: str, operation: str, create_if_absent: bool = False) -> Optional[str]:
        """ARN of a topic, or None if it does not exist and was not created."""
        address = parse(topic)
        if address.is_arn and address.service not in (ServiceType.SNS, ServiceType.UNSPECIFIED):
            raise UnresolvableTopic(topic, operation)
        return self.topics.resolve_arn(address, create_if_absent=create_if_absent)

    def _require_topic_arn(self, topic: str, operation: str, create_if_absent: bool) -> str:
        topic_arn = self.resolve_topic_arn(topic, operation, create_if_absent=create_if_absent)
        if topic_arn is None:
            raise UnresolvableTopic(topic, operation)
        return topic_arn

    # ------------------------------------------------------------------
    # Subscription storage
    # ------------------------------------------------------------------

    def get_subscriber_addresses(self, topic: str) -> List[str]:
        """
        The topic ARN as the single subscriber address.

        Publishing to the topic fans out to every real subscriber, so the
        host bus only ever needs to send to this one address.
        """
        return [self._require_topic_arn(topic, "get_subscriber_addresses", self.options.create_topics)]

    def list_subscriber_endpoints(self, topic: str) -> List[str]:
        """Endpoints of every current subscription of topic."""
        topic_arn = self._require_topic_arn(topic, "list_subscriber_endpoints", False)
        return [s.endpoint for s in self.topics.list_subscriptions(topic_arn)]

    def register(self, topic: str, subscriber: str) -> Subscription:
        """
        Subscribe a queue to a topic.

        Raises:
            UnresolvableSubscriber: If the queue does not exist
            UnresolvableTopic: If the topic does not exist and may not be created
            RemoteOperationFailed: If Subscribe (or the attribute write) fails
        """
        with log_context(topic=topic, subscriber=subscriber, operation="register_subscriber"):
            subscriber_arn = self.resolve_subscriber_arn(subscriber, "register_subscriber")
            if subscriber_arn is None:
                raise UnresolvableSubscriber(
                    subscriber,
                    "register_subscriber",
                    reason="queue does not exist",
                )

            topic_arn = self._require_topic_arn(topic, "register_subscriber", self.options.create_topics)

            protocol = SubscriptionProtocol.SQS.value
            subscription_arn = self.topics.subscribe(topic_arn, protocol, subscriber_arn)

            # Per subscription handle, so set on every (re-)subscribe
            if self.options.raw_message_delivery:
                self.topics.set_subscription_attribute(
                    subscription_arn,
                    RAW_MESSAGE_DELIVERY_ATTRIBUTE,
                    "true",
                )

            logger.info(
                f"SNS topic '{topic_arn}' subscribed to SQS queue '{subscriber_arn}' "
                f"with subscription ARN '{subscription_arn}'"
            )

            return Subscription(
                topic_arn=topic_arn,
                endpoint=subscriber_arn,
                protocol=protocol,
                subscription_arn=subscription_arn,
            )

    def unregister(self, topic: str, subscriber: str) -> bool:
        """
        Remove a queue's subscription to a topic.

        Returns:
            True if a subscription was removed, False if there was nothing
            to remove
        """
        with log_context(topic=topic, subscriber=subscriber, operation="unregister_subscriber"):
            try:
                subscriber_arn = self.resolve_subscriber_arn(subscriber, "unregister_subscriber")
            except UnresolvableSubscriber as e:
                logger.info(f"{e}; nothing to unregister")
                return False

            if subscriber_arn is None:
                logger.info(f"Subscriber '{subscriber}' does not exist; nothing to unregister")
                return False

            try:
                topic_arn = self.resolve_topic_arn(topic, "unregister_subscriber")
            except UnresolvableTopic as e:
                logger.info(f"{e}; nothing to unregister")
                return False

            if topic_arn is None:
                logger.info(f"Topic '{topic}' does not exist; nothing to unregister")
                return False

            match = next(
                (s for s in self.topics.list_subscriptions(topic_arn) if s.endpoint == subscriber_arn),
                None,
            )
            if match is None or not match.subscription_arn:
                logger.info(
                    f"Could not find subscription ARN for topic '{topic_arn}' "
                    f"and subscriber '{subscriber_arn}', ignoring"
                )
                return False

            self.topics.unsubscribe(match.subscription_arn)
            logger.info(f"Unsubscribed SQS queue '{subscriber_arn}' from SNS topic '{topic_arn}'")
            return True


__all__ = ["SubscriptionReconciler"]
