# ============================================================================
# UNIFIED SQS/SNS TRANSPORT
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Transport and subscription storage for the host bus
# PURPOSE: Route sends to SQS or SNS, receive from SQS, manage subscriptions
# CREATED: 16 OCT 2026
# ============================================================================
"""
Unified Transport

One transport object speaks both SQS and SNS:

    send(destination)  SQS queue address           -> SQS SendMessage
                       SNS topic, plain name or    -> (policy sweep once) -> SNS Publish
                       address with no service
                       any other known service     -> UnsupportedDestination
    receive()          own SQS queue only          -> ReceiveNotSupported otherwise

A transport whose input address is an SNS topic ARN is topic-only: it can
send and manage subscriptions but never receive.

Usage:
    options = TransportOptions(input_queue_address="billing", auto_attach_services=True)
    with UnifiedTransport(SqsQueueService(), SnsTopicService(), options) as transport:
        transport.initialize()
        transport.register_subscriber("orders", "billing")
        transport.send("orders", TransportMessage(headers={...}, body=b"..."))
        message = transport.receive()
"""

import logging
from typing import Any, List, Optional

from core.config import MESSAGE_GROUP_HEADER, TransportOptions, get_defaults
from core.contracts import ServiceType
from core.exceptions import (
    MessageDecodeError,
    ReceiveNotSupported,
    SimpleBusError,
    UnresolvableSubscriber,
    UnresolvableTopic,
    UnsupportedDestination,
)
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import Address, QueueIdentity, Subscription, TransportMessage, parse
from infrastructure.aws import AwsConfig
from infrastructure.base_service import QueueService, TopicService
from infrastructure.sns import SnsTopicService
from infrastructure.sqs import SqsQueueService
from messaging.access_policy import AccessPolicyReconciler
from messaging.serializer import TransportMessageSerializer
from messaging.subscriptions import SubscriptionReconciler

logger = get_logger(__name__, ComponentType.TRANSPORT)
checkpoint_logger = logging.getLogger(f"{__name__}.checkpoint")


class UnifiedTransport:
    """
    SQS/SNS transport and subscription storage.

    Owns one SubscriptionReconciler and one AccessPolicyReconciler; the
    checked-topic set (and the adapters' identity caches) therefore live
    exactly as long as this instance.
    """

    def __init__(
        self,
        queues: QueueService,
        topics: TopicService,
        options: Optional[TransportOptions] = None,
        serializer: Optional[TransportMessageSerializer] = None,
    ):
        self.queues = queues
        self.topics = topics
        self.options = options or get_defaults()
        self.serializer = serializer or TransportMessageSerializer()

        self.subscriptions = SubscriptionReconciler(queues, topics, self.options)
        self.access_policy = AccessPolicyReconciler(queues, topics)

        self._input_queue: Optional[QueueIdentity] = None
        self._topic_arn: Optional[str] = None
        self._initialized = False
        self._closed = False

    @classmethod
    def from_env(cls) -> "UnifiedTransport":
        """Build a transport with boto3 adapters configured from the environment."""
        options = TransportOptions.from_env()
        config = AwsConfig.from_env()
        sqs_client, sns_client = config.create_clients()
        return cls(
            SqsQueueService(sqs_client, config),
            SnsTopicService(
                sns_client,
                config,
                use_fifo=options.use_fifo,
                content_based_deduplication=options.content_based_deduplication,
            ),
            options,
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def address(self) -> Optional[str]:
        """The transport's own input address; None for a send-only transport."""
        return self.options.input_queue_address or None

    @property
    def input_queue(self) -> Optional[QueueIdentity]:
        return self._input_queue

    @property
    def topic_arn(self) -> Optional[str]:
        """ARN of the transport's own topic, once initialized."""
        return self._topic_arn

    def initialize(self) -> None:
        """
        Resolve (or create) the transport's own queue and topic.

        Steps:
            1. Own queue: resolved, created when create_queues is set
            2. Own topic: resolved, created when auto_attach_services and
               create_topics are both set
            3. Seed both identity caches with the results
            4. auto_attach_services: subscribe own queue to own topic
            5. Policy checks enabled: sweep own topic's subscribers

        Raises:
            UnresolvableSubscriber: If the own queue does not exist and may
                not be created
        """
        if self._initialized:
            return

        if not self.address:
            logger.info("No input queue configured; transport is send-only")
            self._initialized = True
            return

        with log_context(queue=self.address, operation="initialize"):
            own = parse(self.address)

            if own.is_arn and own.service is ServiceType.SNS:
                logger.info(f"Input address '{own}' is a topic; transport is topic-only")
                topic_ref = self.options.input_topic_address or own.full_identity
            else:
                self._input_queue = self._initialize_queue(own)
                topic_ref = self.options.input_topic_address or self._input_queue.name

            self._topic_arn = self._initialize_topic(topic_ref)

            if self.options.auto_attach_services and self._input_queue and self._topic_arn:
                self.subscriptions.register(self._topic_arn, self._input_queue.arn)

            if self.options.policy_checks_enabled and self._topic_arn:
                self.access_policy.reconcile_topic_subscribers(self._topic_arn)

            self._initialized = True

            log_checkpoint(
                "transport_initialized",
                {
                    "queue_arn": self._input_queue.arn if self._input_queue else None,
                    "topic_arn": self._topic_arn,
                    "auto_attach": self.options.auto_attach_services,
                    "policy_checks": self.options.policy_checks_enabled,
                },
                logger=checkpoint_logger,
            )

    def _initialize_queue(self, own: Address) -> QueueIdentity:
        identity = self.queues.identify(own, create_if_absent=self.options.create_queues)
        if identity is None:
            raise UnresolvableSubscriber(
                str(own),
                "initialize",
                reason="input queue does not exist and create_queues is disabled",
            )
        self.queues.identities.seed(identity.name, identity.arn)
        logger.info(f"Input queue: {identity.arn}")
        return identity

    def _initialize_topic(self, topic_ref: str) -> Optional[str]:
        create = self.options.auto_attach_services and self.options.create_topics
        topic_arn = self.subscriptions.resolve_topic_arn(topic_ref, "initialize", create_if_absent=create)
        if topic_arn is None:
            logger.info(f"Own topic '{topic_ref}' does not exist; not subscribing or sweeping")
            return None
        self.topics.identities.seed(parse(topic_arn).resource_id, topic_arn)
        return topic_arn

    def create_queue(self, address: str) -> Optional[str]:
        """
        Create the queue named by address (and its topic with auto-attach).

        Returns:
            ARN of the queue, or None when create_queues is disabled or the
            address is a topic
        """
        target = parse(address)

        if target.service is ServiceType.SNS:
            if self.options.create_topics:
                self.topics.identities.resolve(target.resource_id, create_if_absent=True)
            return None

        if not target.service.is_routable():
            raise UnsupportedDestination(address, target.service.value)

        if not self.options.create_queues:
            logger.debug(f"create_queues is disabled; not creating '{address}'")
            return None

        queue_arn = self.queues.identities.resolve(target.resource_id, create_if_absent=True)

        if self.options.auto_attach_services and self.options.create_topics:
            self.topics.identities.resolve(target.resource_id, create_if_absent=True)

        return queue_arn

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send(self, destination: str, message: TransportMessage, context: Any = None) -> Optional[str]:
        """
        Send a message to a queue or publish it to a topic.

        Args:
            destination: Queue or topic name, ARN or URL
            message: Headers and body
            context: Host bus transaction context (unused)

        Returns:
            Message id assigned by SQS or SNS

        Raises:
            MalformedAddress: If destination cannot be parsed
            UnsupportedDestination: If destination names another AWS service
            UnresolvableTopic: If the topic does not exist and may not be created
            RemoteOperationFailed: If SQS or SNS rejects the call
        """
        target = parse(destination)
        payload = self.serializer.encode(message)
        group_id = message.headers.get(MESSAGE_GROUP_HEADER)

        if target.service is ServiceType.SQS:
            queue_url = self._destination_queue_url(target)
            return self.queues.send(queue_url, payload, group_id=group_id)

        if not target.service.is_routable():
            raise UnsupportedDestination(destination, target.service.value)

        # SNS, or no service named: the topic is the bus-wide fan-out path
        topic_arn = self.subscriptions.resolve_topic_arn(
            destination,
            "send",
            create_if_absent=self.options.create_topics,
        )
        if topic_arn is None:
            raise UnresolvableTopic(destination, "send")

        if self.options.policy_checks_enabled:
            self.access_policy.reconcile_topic_subscribers(topic_arn)

        return self.topics.publish(
            topic_arn,
            payload,
            group_id=group_id,
            deduplication_id=message.message_id,
        )

    def _destination_queue_url(self, target: Address) -> str:
        if target.is_url:
            return target.full_identity
        identity = self.queues.identify(target)
        if identity is None:
            raise UnresolvableSubscriber(str(target), "send", reason="queue does not exist")
        return identity.url

    # ------------------------------------------------------------------
    # Receiving
    # ------------------------------------------------------------------

    def receive(self, context: Any = None) -> Optional[TransportMessage]:
        """
        Receive at most one message from the input queue.

        A body that is not a transport envelope is logged and left on the
        queue (its receive count grows until the queue's redrive policy
        moves it aside); receive returns None for it.

        Raises:
            ReceiveNotSupported: If the transport has no input queue
        """
        if not self._initialized:
            self.initialize()
        if self._input_queue is None:
            raise ReceiveNotSupported(self.address)

        queue_url = self._input_queue.url
        received = self.queues.receive(queue_url, wait_seconds=self.options.receive_wait_time_seconds)
        if received is None:
            return None

        try:
            message = self.serializer.decode(received.body, received.message_id)
        except MessageDecodeError as e:
            logger.warning(f"{e} (queue {self._input_queue.name}); leaving it for redrive")
            return None

        message = message.model_copy(
            update={"receipt_handle": received.receipt_handle, "queue_url": queue_url}
        )

        if self.options.auto_complete:
            self.queues.delete_message(queue_url, received.receipt_handle)

        return message

    def complete(self, message: TransportMessage) -> None:
        """Delete a received message from its queue."""
        self._require_receipt(message, "complete")
        self.queues.delete_message(message.queue_url, message.receipt_handle)

    def abandon(self, message: TransportMessage, delay_seconds: int = 0) -> None:
        """Make a received message visible again after delay_seconds."""
        self._require_receipt(message, "abandon")
        self.queues.change_visibility(message.queue_url, message.receipt_handle, delay_seconds)

    @staticmethod
    def _require_receipt(message: TransportMessage, operation: str) -> None:
        if not message.receipt_handle or not message.queue_url:
            raise SimpleBusError(
                "Message was not received by this transport (no receipt handle)",
                operation=operation,
                entity_id=message.message_id,
            )

    # ------------------------------------------------------------------
    # Subscription storage
    # ------------------------------------------------------------------

    def get_subscriber_addresses(self, topic: str) -> List[str]:
        return self.subscriptions.get_subscriber_addresses(topic)

    def register_subscriber(self, topic: str, subscriber: str) -> Subscription:
        """Subscribe a queue to a topic, then make sure the topic may deliver to it."""
        subscription = self.subscriptions.register(topic, subscriber)
        if self.options.policy_checks_enabled:
            self.access_policy.check_or_repair(
                subscription.endpoint,
                subscription.topic_arn,
                allow_repair=True,
            )
        return subscription

    def unregister_subscriber(self, topic: str, subscriber: str) -> bool:
        return self.subscriptions.unregister(topic, subscriber)

    def check_access_policy(self, queue_name: str, topic_name: str) -> bool:
        """Whether topic_name may deliver to queue_name. Never writes."""
        return self.access_policy.check_or_repair(queue_name, topic_name, allow_repair=False)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.queues.close()
        self.topics.close()
        logger.debug("Transport closed")

    def __enter__(self) -> "UnifiedTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["UnifiedTransport"]
