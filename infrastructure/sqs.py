# ============================================================================
# SQS INFRASTRUCTURE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - Amazon SQS queue operations
# PURPOSE: boto3 adapter implementing QueueService
# CREATED: 14 OCT 2026
# ============================================================================
"""
SQS Infrastructure

Thin boto3 adapter for the queue side of the transport. Every call goes
through _error_context so failures surface as RemoteOperationFailed with
the HTTP status and request id. "Queue does not exist" on lookups is a
normal state and comes back as None.

Usage:
    queues = SqsQueueService()
    identity = queues.create_queue("billing")
    queues.send(identity.url, body)
"""

import threading
import uuid
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import ClientError

from core.config import DEFAULT_MESSAGE_GROUP, POLICY_ATTRIBUTE
from core.models import QueueIdentity, is_fifo
from infrastructure.aws import AwsConfig
from infrastructure.base_service import (
    QueueService,
    ReceivedMessage,
    is_not_found,
    remote_failure,
)


class SqsQueueService(QueueService):
    """
    Amazon SQS adapter.

    Queue URLs are memoised per instance by (owner account, name); ARNs
    live in self.identities.
    """

    def __init__(
        self,
        client: Any = None,
        config: Optional[AwsConfig] = None,
        queue_attributes: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            client: boto3 SQS client (created from config when omitted)
            config: AWS configuration (defaults to from_env())
            queue_attributes: Attributes applied to queues this adapter creates
        """
        super().__init__()
        self.config = config or AwsConfig.from_env()
        self._client = client if client is not None else self.config.create_client("sqs")
        self._queue_attributes = dict(queue_attributes or {})
        self._queue_urls: Dict[Tuple[Optional[str], str], str] = {}
        self._urls_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Queue lifecycle
    # ------------------------------------------------------------------

    def create_queue(self, name: str) -> QueueIdentity:
        attributes = dict(self._queue_attributes)
        if is_fifo(name):
            attributes["FifoQueue"] = "true"

        with self._error_context("create_queue", name):
            response = self._check_response(
                self._client.create_queue(QueueName=name, Attributes=attributes),
                "create_queue",
                name,
            )
            url = response["QueueUrl"]
            arn = self._get_queue_arn(url)

        with self._urls_lock:
            self._queue_urls[(None, name)] = url

        self.logger.info(f"SQS queue ready: {name} ({arn})")
        return QueueIdentity(name=name, arn=arn, url=url)

    def delete_queue(self, queue_url: str) -> None:
        with self._error_context("delete_queue", queue_url):
            self._check_response(
                self._client.delete_queue(QueueUrl=queue_url),
                "delete_queue",
                queue_url,
            )
        with self._urls_lock:
            for key in [k for k, url in self._queue_urls.items() if url == queue_url]:
                del self._queue_urls[key]
        self.logger.info(f"SQS queue deleted: {queue_url}")

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def _get_queue_arn(self, queue_url: str) -> str:
        response = self._client.get_queue_attributes(
            QueueUrl=queue_url,
            AttributeNames=["QueueArn"],
        )
        return response["Attributes"]["QueueArn"]

    def get_queue_url(self, name: str, owner_account: Optional[str] = None) -> Optional[str]:
        key = (owner_account or None, name)
        url = self._queue_urls.get(key)
        if url is not None:
            return url

        kwargs = {"QueueName": name}
        if owner_account:
            kwargs["QueueOwnerAWSAccountId"] = owner_account

        with self._error_context("get_queue_url", name):
            try:
                response = self._client.get_queue_url(**kwargs)
            except ClientError as e:
                if is_not_found(e):
                    return None
                raise remote_failure(e, "get_queue_url", name) from e

        url = response["QueueUrl"]
        with self._urls_lock:
            self._queue_urls[key] = url
        return url

    def get_queue_id(self, name: str) -> Optional[Tuple[str, str]]:
        url = self.get_queue_url(name)
        if url is None:
            return None
        with self._error_context("get_queue_arn", name):
            try:
                arn = self._get_queue_arn(url)
            except ClientError as e:
                # Deleted between the two calls
                if is_not_found(e):
                    return None
                raise
        return url, arn

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def send(self, queue_url: str, body: str, group_id: Optional[str] = None) -> Optional[str]:
        kwargs = {"QueueUrl": queue_url, "MessageBody": body}
        if is_fifo(queue_url):
            kwargs["MessageGroupId"] = group_id or DEFAULT_MESSAGE_GROUP
            kwargs["MessageDeduplicationId"] = uuid.uuid4().hex

        with self._error_context("send_message", queue_url):
            response = self._check_response(
                self._client.send_message(**kwargs),
                "send_message",
                queue_url,
            )

        message_id = response.get("MessageId")
        self.logger.debug(f"Message sent to {queue_url}: {message_id}")
        return message_id

    def receive(self, queue_url: str, wait_seconds: int = 1) -> Optional[ReceivedMessage]:
        with self._error_context("receive_message", queue_url):
            response = self._check_response(
                self._client.receive_message(
                    QueueUrl=queue_url,
                    MaxNumberOfMessages=1,
                    WaitTimeSeconds=wait_seconds,
                    MessageAttributeNames=["All"],
                ),
                "receive_message",
                queue_url,
            )

        messages = response.get("Messages") or []
        if not messages:
            return None

        raw = messages[0]
        return ReceivedMessage(
            body=raw["Body"],
            receipt_handle=raw["ReceiptHandle"],
            message_id=raw.get("MessageId"),
        )

    def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        with self._error_context("delete_message", queue_url):
            self._check_response(
                self._client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle),
                "delete_message",
                queue_url,
            )

    def change_visibility(self, queue_url: str, receipt_handle: str, timeout_seconds: int) -> None:
        with self._error_context("change_message_visibility", queue_url):
            self._check_response(
                self._client.change_message_visibility(
                    QueueUrl=queue_url,
                    ReceiptHandle=receipt_handle,
                    VisibilityTimeout=timeout_seconds,
                ),
                "change_message_visibility",
                queue_url,
            )

    # ------------------------------------------------------------------
    # Access policy attributes
    # ------------------------------------------------------------------

    def get_policy_attributes(self, queue_url: str) -> Dict[str, str]:
        with self._error_context("get_queue_attributes", queue_url):
            response = self._check_response(
                self._client.get_queue_attributes(
                    QueueUrl=queue_url,
                    AttributeNames=[POLICY_ATTRIBUTE],
                ),
                "get_queue_attributes",
                queue_url,
            )
        return response.get("Attributes") or {}

    def set_policy_attributes(self, queue_url: str, attributes: Dict[str, str]) -> None:
        with self._error_context("set_queue_attributes", queue_url):
            self._check_response(
                self._client.set_queue_attributes(QueueUrl=queue_url, Attributes=attributes),
                "set_queue_attributes",
                queue_url,
            )


__all__ = ["SqsQueueService"]
