# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Tests - Fixtures
# PURPOSE: Fake services and transport factory shared by all test modules
# CREATED: 16 OCT 2026
# ============================================================================
"""
Shared fixtures. The fakes themselves live in tests/fakes.py.
"""

from typing import Tuple

import pytest

from core.config import TransportOptions
from core.models import Policy, PolicyStatement
from fakes import FakeQueueService, FakeTopicService, queue_arn, topic_arn
from messaging import UnifiedTransport


@pytest.fixture
def queues():
    return FakeQueueService()


@pytest.fixture
def topics(queues):
    return FakeTopicService(queues)


@pytest.fixture
def make_transport(queues, topics):
    """Factory: UnifiedTransport over the shared fakes."""

    def _make(**overrides) -> UnifiedTransport:
        return UnifiedTransport(queues, topics, TransportOptions(**overrides))

    return _make


@pytest.fixture
def allow_statement_json():
    """Render a policy document allowing each (queue, topic) name pair."""

    def _render(*pairs: Tuple[str, str]) -> str:
        policy = Policy.empty()
        for queue_name, topic_name in pairs:
            policy = policy.with_statement(
                PolicyStatement.allow_topic(queue_arn(queue_name), topic_arn(topic_name))
            )
        return policy.to_json()

    return _render
