# ============================================================================
# ACCESS POLICY RECONCILER
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - SQS queue policy inspection and repair
# PURPOSE: Make sure every subscribed queue lets its topic deliver to it
# CREATED: 15 OCT 2026
# ============================================================================
"""
Access Policy Reconciler

SNS reports a publish as successful even when a subscribed queue's
Policy does not allow the topic to SendMessage. The message is then
dropped without an error anywhere. This module closes that gap.

check_or_repair(queue, topic, allow_repair):
    1. read the queue's Policy attribute (may be absent)
    2. build the allow statement for (queue, topic)
    3. already present (structural equality)  -> True, no write
    4. missing and not allow_repair           -> False, never writes
    5. missing and allow_repair               -> append to the existing
       statements and write the whole document back -> True

Step 5 is an unconditional whole-document replace. Two writers adding
different statements to the same queue at the same time can lose one
addition; re-running reconciliation repairs it.

reconcile_topic_subscribers(topic_arn) sweeps the topic's *actual*
subscriber list (subscriptions made outside this library included), once
per topic per reconciler instance.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple, Union

from core.config import POLICY_ATTRIBUTE
from core.contracts import ServiceType
from core.exceptions import (
    PolicyDriftWarning,
    SimpleBusError,
    UnresolvableSubscriber,
    UnresolvableTopic,
)
from core.logging import log_checkpoint, log_context
from core.models import Address, Policy, PolicyStatement, QueueIdentity, parse, try_parse
from infrastructure.base_service import QueueService, TopicService

logger = logging.getLogger(__name__)

QueueRef = Union[str, Address, QueueIdentity]
TopicRef = Union[str, Address]


# ============================================================================
# CHECKED TOPIC SET
# ============================================================================

class CheckedTopicSet:
    """Topic ARNs whose subscribers have already been swept."""

    def __init__(self):
        self._topics: Set[str] = set()
        self._lock = threading.Lock()

    def add(self, topic_arn: str) -> bool:
        """Mark topic_arn checked; False if it already was."""
        with self._lock:
            if topic_arn in self._topics:
                return False
            self._topics.add(topic_arn)
            return True

    def __contains__(self, topic_arn: str) -> bool:
        return topic_arn in self._topics

    def __len__(self) -> int:
        return len(self._topics)


# ============================================================================
# SWEEP RESULT
# ============================================================================

@dataclass
class PolicySweepResult:
    """Result of sweeping one topic's subscribers."""
    topic_arn: str
    already_checked: bool = False
    checked: int = 0
    repaired: List[str] = field(default_factory=list)
    drift: List[PolicyDriftWarning] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.drift


# ============================================================================
# RECONCILER
# ============================================================================

class AccessPolicyReconciler:
    """Inspects and repairs SQS queue policies for SNS delivery."""

    def __init__(
        self,
        queues: QueueService,
        topics: TopicService,
        checked_topics: Optional[CheckedTopicSet] = None,
    ):
        self.queues = queues
        self.topics = topics
        self.checked_topics = checked_topics if checked_topics is not None else CheckedTopicSet()

    def _identify_queue(self, queue: QueueRef) -> QueueIdentity:
        if isinstance(queue, QueueIdentity):
            return queue

        address = queue if isinstance(queue, Address) else parse(queue)
        if address.is_arn and address.service is not ServiceType.SQS:
            raise UnresolvableSubscriber(
                str(address),
                "check_access_policy",
                reason=f"not an SQS queue ('{address.service.value}')",
            )

        identity = self.queues.identify(address)
        if identity is None:
            raise UnresolvableSubscriber(str(address), "check_access_policy", reason="queue does not exist")
        return identity

    def _resolve_topic(self, topic: TopicRef) -> str:
        address = topic if isinstance(topic, Address) else parse(topic)
        topic_arn = self.topics.resolve_arn(address)
        if topic_arn is None:
            raise UnresolvableTopic(str(address), "check_access_policy")
        return topic_arn

    def _read_policy(self, queue: QueueIdentity) -> Optional[Policy]:
        attributes = self.queues.get_policy_attributes(queue.url)
        text = attributes.get(POLICY_ATTRIBUTE)
        if not text:
            return None
        try:
            return Policy.from_json(text)
        except ValueError as e:
            # Rewriting an unreadable document would drop its statements
            raise SimpleBusError(
                f"Access policy of queue '{queue.arn}' is not a valid policy document: {e}",
                operation="check_access_policy",
                entity_id=queue.arn,
            ) from e

    def _reconcile(self, queue: QueueIdentity, topic_arn: str, allow_repair: bool) -> Tuple[bool, bool]:
        """(authorized, written)"""
        statement = PolicyStatement.allow_topic(queue.arn, topic_arn)
        policy = self._read_policy(queue)

        if policy is not None and policy.contains(statement):
            return True, False

        if not allow_repair:
            return False, False

        base = policy if policy is not None else Policy.empty()
        updated = base.with_statement(statement)

        logger.debug(f"Updating SQS access policy of '{queue.arn}' to allow topic '{topic_arn}'")
        self.queues.set_policy_attributes(queue.url, {POLICY_ATTRIBUTE: updated.to_json()})

        log_checkpoint(
            "access_policy_repaired",
            {"queue_arn": queue.arn, "topic_arn": topic_arn, "statements": updated.statement_count},
            logger=logger,
        )
        return True, True

    def check_or_repair(self, queue: QueueRef, topic: TopicRef, allow_repair: bool) -> bool:
        """
        Check (and optionally repair) that topic may deliver to queue.

        Args:
            queue: Queue name, ARN, URL or resolved QueueIdentity
            topic: Topic name or ARN
            allow_repair: Write the missing statement; False never mutates

        Returns:
            True if the queue's policy authorizes the topic (after repair)

        Raises:
            UnresolvableSubscriber: If the queue does not exist
            UnresolvableTopic: If the topic does not exist
            RemoteOperationFailed: If reading or writing the policy fails
        """
        identity = self._identify_queue(queue)
        topic_arn = self._resolve_topic(topic)
        with log_context(queue=identity.name, topic=topic_arn, operation="check_access_policy"):
            authorized, _ = self._reconcile(identity, topic_arn, allow_repair)
            return authorized

    def reconcile_topic_subscribers(self, topic_arn: str, force: bool = False) -> PolicySweepResult:
        """
        Repair the policy of every SQS queue subscribed to topic_arn.

        Runs at most once per topic per reconciler unless force is set.
        Endpoints that cannot be checked are recorded as PolicyDriftWarning
        and logged; the sweep continues past them.
        """
        if not force and topic_arn in self.checked_topics:
            return PolicySweepResult(topic_arn=topic_arn, already_checked=True)

        result = PolicySweepResult(topic_arn=topic_arn)

        with log_context(topic=topic_arn, operation="reconcile_topic_subscribers"):
            for subscription in self.topics.list_subscriptions(topic_arn):
                if not subscription.is_queue_subscription:
                    continue

                queue = self._sweep_target(subscription.endpoint, topic_arn, result)
                if queue is None:
                    continue

                _, written = self._reconcile(queue, topic_arn, allow_repair=True)
                result.checked += 1
                if written:
                    result.repaired.append(queue.arn)

            self.checked_topics.add(topic_arn)

            logger.info(
                f"Access policy sweep of '{topic_arn}': {result.checked} checked, "
                f"{len(result.repaired)} repaired, {len(result.drift)} skipped"
            )
        return result

    def _sweep_target(
        self,
        endpoint: str,
        topic_arn: str,
        result: PolicySweepResult,
    ) -> Optional[QueueIdentity]:
        address = try_parse(endpoint)
        if address is None:
            reason = "endpoint is not a parsable address"
        elif not address.is_arn or address.service is not ServiceType.SQS:
            reason = "endpoint is not an SQS queue ARN"
        else:
            identity = self.queues.identify(address)
            if identity is not None:
                return identity
            reason = "queue does not exist"

        warning = PolicyDriftWarning(topic_arn, endpoint, reason)
        result.drift.append(warning)
        logger.warning(str(warning))
        return None


__all__ = [
    "AccessPolicyReconciler",
    "CheckedTopicSet",
    "PolicySweepResult",
]
