# ============================================================================
# ACCESS POLICY RECONCILER TESTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Tests - Queue policy inspection, repair and topic sweeps
# PURPOSE: Verify read-only checks, single-write repair and merge safety
# CREATED: 16 OCT 2026
# ============================================================================
"""
Access Policy Reconciler Tests

Covers:
1. check_or_repair(allow_repair=False) never writes
2. check_or_repair(allow_repair=True) writes exactly once
3. Existing statements for other topics survive a repair
4. Topic sweeps: once per topic, external subscriptions, bad endpoints

Run with:
    pytest tests/test_access_policy.py -v
"""

import json

import pytest

from core.exceptions import PolicyDriftWarning, SimpleBusError, UnresolvableSubscriber, UnresolvableTopic
from core.models import PolicyStatement
from fakes import queue_arn, queue_url, topic_arn
from messaging.access_policy import AccessPolicyReconciler, CheckedTopicSet


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def reconciler(queues, topics):
    queues.create_queue("billing")
    topics.create_topic("orders")
    return AccessPolicyReconciler(queues, topics)


def orders_allowed(queues) -> bool:
    policy = queues.policy_of("billing")
    return policy is not None and policy.contains(
        PolicyStatement.allow_topic(queue_arn("billing"), topic_arn("orders"))
    )


# ============================================================================
# CHECK ONLY
# ============================================================================

class TestCheckOnly:

    def test_absent_policy_is_unauthorized(self, reconciler, queues):
        assert reconciler.check_or_repair("billing", "orders", allow_repair=False) is False
        assert queues.policy_writes == {}
        assert queues.queues["billing"].policy is None

    def test_other_topic_only(self, reconciler, queues, allow_statement_json):
        queues.queues["billing"].policy = allow_statement_json(("billing", "shipping"))
        before = queues.queues["billing"].policy

        assert reconciler.check_or_repair("billing", "orders", allow_repair=False) is False
        assert queues.queues["billing"].policy == before
        assert queues.policy_writes == {}

    def test_authorized(self, reconciler, queues, allow_statement_json):
        queues.queues["billing"].policy = allow_statement_json(("billing", "orders"))
        assert reconciler.check_or_repair("billing", "orders", allow_repair=False) is True
        assert queues.policy_writes == {}

    def test_console_style_statement_is_not_ours(self, reconciler, queues):
        queues.queues["billing"].policy = json.dumps({
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"AWS": "*"},
                "Action": "SQS:SendMessage",
                "Resource": queue_arn("billing"),
                "Condition": {"ArnEquals": {"aws:SourceArn": topic_arn("orders")}},
            }],
        })
        assert reconciler.check_or_repair("billing", "orders", allow_repair=False) is False


# ============================================================================
# REPAIR
# ============================================================================

class TestRepair:

    def test_writes_missing_statement(self, reconciler, queues):
        assert reconciler.check_or_repair("billing", "orders", allow_repair=True) is True
        assert orders_allowed(queues)
        assert queues.policy_writes == {"billing": 1}

    def test_second_call_does_not_write(self, reconciler, queues):
        reconciler.check_or_repair("billing", "orders", allow_repair=True)
        reconciler.check_or_repair("billing", "orders", allow_repair=True)
        assert queues.policy_writes == {"billing": 1}

    def test_keeps_unrelated_statements(self, reconciler, queues, topics, allow_statement_json):
        """An existing grant for 'shipping' survives adding 'orders'."""
        topics.create_topic("shipping")
        queues.queues["billing"].policy = allow_statement_json(("billing", "shipping"))

        assert reconciler.check_or_repair("billing", "orders", allow_repair=True) is True

        policy = queues.policy_of("billing")
        assert policy.statement_count == 2
        assert policy.contains(PolicyStatement.allow_topic(queue_arn("billing"), topic_arn("shipping")))
        assert policy.contains(PolicyStatement.allow_topic(queue_arn("billing"), topic_arn("orders")))

    def test_keeps_policy_header(self, reconciler, queues):
        queues.queues["billing"].policy = json.dumps({
            "Version": "2012-10-17",
            "Id": "billing-policy",
            "Statement": [],
        })
        reconciler.check_or_repair("billing", "orders", allow_repair=True)
        assert json.loads(queues.queues["billing"].policy)["Id"] == "billing-policy"

    def test_empty_statement_list_keeps_version(self, reconciler, queues):
        """A policy with no statements is merged into, not replaced."""
        queues.queues["billing"].policy = json.dumps({
            "Version": "2008-10-17",
            "Id": "billing-policy",
            "Statement": [],
        })

        assert reconciler.check_or_repair("billing", "orders", allow_repair=True) is True

        document = json.loads(queues.queues["billing"].policy)
        assert document["Version"] == "2008-10-17"
        assert document["Id"] == "billing-policy"
        assert len(document["Statement"]) == 1
        assert queues.policy_writes == {"billing": 1}

    @pytest.mark.parametrize("queue, topic", [
        (queue_arn("billing"), topic_arn("orders")),
        (queue_url("billing"), "orders"),
        ("billing", topic_arn("orders")),
    ])
    def test_any_address_shape(self, reconciler, queues, queue, topic):
        assert reconciler.check_or_repair(queue, topic, allow_repair=True) is True
        assert orders_allowed(queues)

    def test_missing_queue(self, reconciler):
        with pytest.raises(UnresolvableSubscriber):
            reconciler.check_or_repair("missing", "orders", allow_repair=True)

    def test_missing_topic(self, reconciler, queues):
        with pytest.raises(UnresolvableTopic):
            reconciler.check_or_repair("billing", "missing", allow_repair=True)
        assert queues.policy_writes == {}

    def test_unreadable_policy_is_not_overwritten(self, reconciler, queues):
        queues.queues["billing"].policy = "{not json"
        with pytest.raises(SimpleBusError):
            reconciler.check_or_repair("billing", "orders", allow_repair=True)
        assert queues.queues["billing"].policy == "{not json"


# ============================================================================
# TOPIC SWEEP
# ============================================================================

class TestTopicSweep:

    def test_repairs_external_subscriptions(self, reconciler, queues, topics):
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))

        result = reconciler.reconcile_topic_subscribers(topic_arn("orders"))

        assert result.checked == 1
        assert result.repaired == [queue_arn("billing")]
        assert result.clean
        assert orders_allowed(queues)

    def test_once_per_topic(self, reconciler, queues, topics):
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))

        reconciler.reconcile_topic_subscribers(topic_arn("orders"))
        queues.queues["billing"].policy = None

        second = reconciler.reconcile_topic_subscribers(topic_arn("orders"))

        assert second.already_checked
        assert queues.queues["billing"].policy is None
        assert queues.policy_writes == {"billing": 1}

    def test_force_sweeps_again(self, reconciler, queues, topics):
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))
        reconciler.reconcile_topic_subscribers(topic_arn("orders"))
        queues.queues["billing"].policy = None

        result = reconciler.reconcile_topic_subscribers(topic_arn("orders"), force=True)

        assert result.repaired == [queue_arn("billing")]
        assert orders_allowed(queues)

    def test_already_authorized_is_not_rewritten(self, reconciler, queues, topics, allow_statement_json):
        queues.queues["billing"].policy = allow_statement_json(("billing", "orders"))
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))

        result = reconciler.reconcile_topic_subscribers(topic_arn("orders"))

        assert result.checked == 1
        assert result.repaired == []
        assert queues.policy_writes == {}

    def test_skips_non_queue_protocols(self, reconciler, queues, topics):
        topics.add_external_subscription("orders", "https", "https://hooks.example.com/orders")
        topics.add_external_subscription("orders", "email", "ops@example.com")

        result = reconciler.reconcile_topic_subscribers(topic_arn("orders"))

        assert result.checked == 0
        assert result.clean

    def test_bad_endpoints_do_not_stop_the_sweep(self, reconciler, queues, topics, caplog):
        topics.add_external_subscription("orders", "sqs", "arn:aws:sqs:broken")
        topics.add_external_subscription("orders", "sqs", queue_arn("deleted"))
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))

        result = reconciler.reconcile_topic_subscribers(topic_arn("orders"))

        assert result.checked == 1
        assert orders_allowed(queues)
        assert len(result.drift) == 2
        assert all(isinstance(w, PolicyDriftWarning) for w in result.drift)
        assert {w.endpoint for w in result.drift} == {"arn:aws:sqs:broken", queue_arn("deleted")}
        assert sum("Skipped access policy check" in r.getMessage() for r in caplog.records) == 2

    def test_checked_set_shared_between_reconcilers(self, queues, topics):
        queues.create_queue("billing")
        topics.create_topic("orders")
        topics.add_external_subscription("orders", "sqs", queue_arn("billing"))
        checked = CheckedTopicSet()

        AccessPolicyReconciler(queues, topics, checked).reconcile_topic_subscribers(topic_arn("orders"))
        result = AccessPolicyReconciler(queues, topics, checked).reconcile_topic_subscribers(topic_arn("orders"))

        assert result.already_checked
        assert topic_arn("orders") in checked

    def test_separate_reconcilers_are_isolated(self, queues, topics):
        queues.create_queue("billing")
        topics.create_topic("orders")
        first = AccessPolicyReconciler(queues, topics)
        second = AccessPolicyReconciler(queues, topics)

        first.reconcile_topic_subscribers(topic_arn("orders"))

        assert topic_arn("orders") in first.checked_topics
        assert topic_arn("orders") not in second.checked_topics


class TestCheckedTopicSet:

    def test_add_reports_novelty(self):
        checked = CheckedTopicSet()
        assert checked.add(topic_arn("orders")) is True
        assert checked.add(topic_arn("orders")) is False
        assert len(checked) == 1
