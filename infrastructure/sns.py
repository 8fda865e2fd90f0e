# ============================================================================
# SNS INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - Amazon SNS topic operations
# PURPOSE: boto3 adapter implementing TopicService
# CREATED: 14 OCT 2026
# ============================================================================
"""
SNS Infrastructure

Thin boto3 adapter for the topic side of the transport.

SNS has no exact-match "get topic by name" call, so find_topic_arn pages
through ListTopics until it finds the name or runs out of pages. It never
stops early on a page boundary: a missing topic is only reported after
every page has been scanned.
"""

import uuid
from typing import Any, List, Optional

from core.config import DEFAULT_MESSAGE_GROUP
from core.exceptions import MalformedAddress
from core.models import Subscription, is_fifo, is_valid_topic_name
from infrastructure.aws import AwsConfig
from infrastructure.base_service import TopicService


class SnsTopicService(TopicService):
    """
    Amazon SNS adapter.

    Topic ARNs are cached in self.identities; find_topic_arn itself always
    goes to the service.
    """

    def __init__(
        self,
        client: Any = None,
        config: Optional[AwsConfig] = None,
        use_fifo: bool = False,
        content_based_deduplication: bool = False,
    ):
        super().__init__()
        self.config = config or AwsConfig.from_env()
        self._client = client if client is not None else self.config.create_client("sns")
        self.use_fifo = use_fifo
        self.content_based_deduplication = content_based_deduplication

    # ------------------------------------------------------------------
    # Topic lifecycle
    # ------------------------------------------------------------------

    def create_topic(self, name: str) -> str:
        if not is_valid_topic_name(name):
            raise MalformedAddress(
                name,
                "SNS topic names are 1-256 letters, digits, '_' or '-', with an optional '.fifo' suffix",
            )
        if self.use_fifo and not is_fifo(name):
            raise MalformedAddress(name, "FIFO topic names must end with '.fifo'")

        kwargs = {"Name": name}
        if is_fifo(name):
            kwargs["Attributes"] = {
                "FifoTopic": "true",
                "ContentBasedDeduplication": str(self.content_based_deduplication).lower(),
            }

        with self._error_context("create_topic", name):
            response = self._check_response(
                self._client.create_topic(**kwargs),
                "create_topic",
                name,
            )

        topic_arn = response["TopicArn"]
        self.logger.info(f"SNS topic ready: {name} ({topic_arn})")
        return topic_arn

    def delete_topic(self, topic_arn: str) -> None:
        with self._error_context("delete_topic", topic_arn):
            self._check_response(
                self._client.delete_topic(TopicArn=topic_arn),
                "delete_topic",
                topic_arn,
            )
        self.logger.info(f"SNS topic deleted: {topic_arn}")

    def close(self) -> None:
        self._client.close()

    def find_topic_arn(self, name: str) -> Optional[str]:
        with self._error_context("list_topics", name):
            paginator = self._client.get_paginator("list_topics")
            pages_scanned = 0
            for page in paginator.paginate():
                pages_scanned += 1
                for topic in page.get("Topics", []):
                    topic_arn = topic.get("TopicArn", "")
                    if topic_arn.rsplit(":", 1)[-1] == name:
                        return topic_arn

        self.logger.debug(f"SNS topic '{name}' not found after scanning {pages_scanned} page(s)")
        return None

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def publish(
        self,
        topic_arn: str,
        payload: str,
        group_id: Optional[str] = None,
        deduplication_id: Optional[str] = None,
    ) -> Optional[str]:
        kwargs = {"TopicArn": topic_arn, "Message": payload}
        if is_fifo(topic_arn):
            kwargs["MessageGroupId"] = group_id or DEFAULT_MESSAGE_GROUP
            if deduplication_id:
                kwargs["MessageDeduplicationId"] = deduplication_id
            elif not self.content_based_deduplication:
                kwargs["MessageDeduplicationId"] = uuid.uuid4().hex

        with self._error_context("publish", topic_arn):
            response = self._check_response(
                self._client.publish(**kwargs),
                "publish",
                topic_arn,
            )

        message_id = response.get("MessageId")
        self.logger.debug(f"Message published to {topic_arn}: {message_id}")
        return message_id

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def list_subscriptions(self, topic_arn: str) -> List[Subscription]:
        subscriptions = []
        with self._error_context("list_subscriptions_by_topic", topic_arn):
            paginator = self._client.get_paginator("list_subscriptions_by_topic")
            for page in paginator.paginate(TopicArn=topic_arn):
                for raw in page.get("Subscriptions", []):
                    subscriptions.append(Subscription.from_api(raw))
        return subscriptions

    def subscribe(self, topic_arn: str, protocol: str, endpoint: str) -> str:
        # SNS returns the existing subscription for identical arguments
        with self._error_context("subscribe", topic_arn):
            response = self._check_response(
                self._client.subscribe(
                    TopicArn=topic_arn,
                    Protocol=protocol,
                    Endpoint=endpoint,
                    ReturnSubscriptionArn=True,
                ),
                "subscribe",
                topic_arn,
            )
        return response["SubscriptionArn"]

    def unsubscribe(self, subscription_arn: str) -> None:
        with self._error_context("unsubscribe", subscription_arn):
            self._check_response(
                self._client.unsubscribe(SubscriptionArn=subscription_arn),
                "unsubscribe",
                subscription_arn,
            )

    def set_subscription_attribute(self, subscription_arn: str, key: str, value: str) -> None:
        with self._error_context("set_subscription_attributes", subscription_arn):
            self._check_response(
                self._client.set_subscription_attributes(
                    SubscriptionArn=subscription_arn,
                    AttributeName=key,
                    AttributeValue=value,
                ),
                "set_subscription_attributes",
                subscription_arn,
            )


__all__ = ["SnsTopicService"]
