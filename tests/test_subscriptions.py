# ============================================================================
# SUBSCRIPTION RECONCILER TESTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Tests - Idempotent subscribe/unsubscribe
# PURPOSE: Verify register/unregister idempotence and address handling
# CREATED: 16 OCT 2026
# ============================================================================
"""
Subscription Reconciler Tests

Run with:
    pytest tests/test_subscriptions.py -v
"""

import pytest

from core.config import TransportOptions
from core.exceptions import UnresolvableSubscriber, UnresolvableTopic
from fakes import queue_arn, queue_url, topic_arn
from messaging.subscriptions import SubscriptionReconciler


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def reconciler(queues, topics):
    queues.create_queue("billing")
    return SubscriptionReconciler(queues, topics, TransportOptions())


@pytest.fixture
def no_create_reconciler(queues, topics):
    queues.create_queue("billing")
    return SubscriptionReconciler(queues, topics, TransportOptions(create_topics=False))


# ============================================================================
# REGISTER
# ============================================================================

class TestRegister:

    def test_creates_topic_and_subscribes(self, reconciler, topics):
        subscription = reconciler.register("orders", "billing")

        assert subscription.topic_arn == topic_arn("orders")
        assert subscription.endpoint == queue_arn("billing")
        assert subscription.protocol == "sqs"
        assert [s.endpoint for s in topics.subscriptions_of("orders")] == [queue_arn("billing")]

    def test_twice_yields_one_subscription(self, reconciler, topics):
        first = reconciler.register("orders", "billing")
        second = reconciler.register("orders", "billing")

        assert first.subscription_arn == second.subscription_arn
        assert len(topics.subscriptions_of("orders")) == 1

    def test_sets_raw_message_delivery(self, reconciler, topics):
        subscription = reconciler.register("orders", "billing")
        assert topics.subscription_attributes[subscription.subscription_arn] == {"RawMessageDelivery": "true"}

    def test_raw_delivery_disabled(self, queues, topics):
        queues.create_queue("billing")
        reconciler = SubscriptionReconciler(queues, topics, TransportOptions(raw_message_delivery=False))
        subscription = reconciler.register("orders", "billing")
        assert subscription.subscription_arn not in topics.subscription_attributes

    @pytest.mark.parametrize("subscriber", [
        "billing",
        queue_arn("billing"),
        queue_url("billing"),
    ])
    def test_any_subscriber_address_shape(self, reconciler, subscriber):
        assert reconciler.register("orders", subscriber).endpoint == queue_arn("billing")

    def test_topic_by_arn(self, reconciler, topics):
        topics.create_topic("orders")
        assert reconciler.register(topic_arn("orders"), "billing").topic_arn == topic_arn("orders")

    def test_missing_queue(self, reconciler, queues):
        with pytest.raises(UnresolvableSubscriber):
            reconciler.register("orders", "missing")
        assert "missing" not in queues.queues

    def test_non_sqs_subscriber(self, reconciler):
        with pytest.raises(UnresolvableSubscriber):
            reconciler.register("orders", "arn:aws:lambda:us-east-1:123456789012:function:handler")

    def test_missing_topic_without_create(self, no_create_reconciler, topics):
        with pytest.raises(UnresolvableTopic):
            no_create_reconciler.register("orders", "billing")
        assert topics.topics == {}

    def test_non_topic_arn(self, reconciler):
        with pytest.raises(UnresolvableTopic):
            reconciler.register(queue_arn("orders"), "billing")


# ============================================================================
# UNREGISTER
# ============================================================================

class TestUnregister:

    def test_removes_subscription(self, reconciler, topics):
        reconciler.register("orders", "billing")
        assert reconciler.unregister("orders", "billing") is True
        assert topics.subscriptions_of("orders") == []

    def test_twice_is_noop(self, reconciler):
        reconciler.register("orders", "billing")
        assert reconciler.unregister("orders", "billing") is True
        assert reconciler.unregister("orders", "billing") is False

    def test_never_registered(self, reconciler, topics):
        topics.create_topic("orders")
        assert reconciler.unregister("orders", "billing") is False

    def test_missing_topic(self, reconciler, topics):
        assert reconciler.unregister("orders", "billing") is False
        assert topics.topics == {}

    def test_non_sns_topic(self, reconciler, topics):
        assert reconciler.unregister("arn:aws:lambda:us-east-1:123456789012:function:f", "billing") is False
        assert topics.find_calls == 0

    def test_missing_queue(self, reconciler):
        assert reconciler.unregister("orders", "missing") is False

    def test_non_sqs_subscriber(self, reconciler):
        assert reconciler.unregister("orders", "arn:aws:lambda:us-east-1:123456789012:function:x") is False

    def test_leaves_other_subscribers(self, reconciler, queues, topics):
        queues.create_queue("audit")
        reconciler.register("orders", "billing")
        reconciler.register("orders", "audit")

        reconciler.unregister("orders", "billing")

        assert [s.endpoint for s in topics.subscriptions_of("orders")] == [queue_arn("audit")]


# ============================================================================
# SUBSCRIBER ADDRESSES
# ============================================================================

class TestSubscriberAddresses:

    def test_topic_arn_is_the_only_address(self, reconciler):
        assert reconciler.get_subscriber_addresses("orders") == [topic_arn("orders")]

    def test_without_create(self, no_create_reconciler):
        with pytest.raises(UnresolvableTopic):
            no_create_reconciler.get_subscriber_addresses("orders")

    def test_list_endpoints(self, reconciler, queues):
        queues.create_queue("audit")
        reconciler.register("orders", "billing")
        reconciler.register("orders", "audit")
        assert sorted(reconciler.list_subscriber_endpoints("orders")) == [
            queue_arn("audit"),
            queue_arn("billing"),
        ]
