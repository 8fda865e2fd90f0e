# ============================================================================
# QUEUE ACCESS POLICY MODEL TESTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Tests - Policy documents and statement equality
# PURPOSE: Verify structural equality, normalisation and non-destructive merge
# CREATED: 16 OCT 2026
# ============================================================================
"""
Queue Access Policy Model Tests

Run with:
    pytest tests/test_policy_models.py -v
"""

import json

import pytest

from core.models import Policy, PolicyStatement

QUEUE = "arn:aws:sqs:us-east-1:123456789012:billing"
ORDERS = "arn:aws:sns:us-east-1:123456789012:orders"
SHIPPING = "arn:aws:sns:us-east-1:123456789012:shipping"


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def orders_statement():
    return PolicyStatement.allow_topic(QUEUE, ORDERS)


@pytest.fixture
def console_statement():
    """The statement the AWS console writes when subscribing a queue."""
    return {
        "Sid": "topic-subscription-arn:aws:sns:us-east-1:123456789012:orders",
        "Effect": "Allow",
        "Principal": {"AWS": "*"},
        "Action": "SQS:SendMessage",
        "Resource": QUEUE,
        "Condition": {"ArnLike": {"aws:SourceArn": ORDERS}},
    }


# ============================================================================
# STATEMENT
# ============================================================================

class TestPolicyStatement:

    def test_document_shape(self, orders_statement):
        document = orders_statement.to_document()
        assert document["Effect"] == "Allow"
        assert document["Principal"] == {"Service": "sns.amazonaws.com"}
        assert document["Action"] == "sqs:SendMessage"
        assert document["Resource"] == QUEUE
        assert document["Condition"] == {"ArnEquals": {"aws:SourceArn": ORDERS}}

    def test_sid_is_deterministic(self, orders_statement):
        assert orders_statement.sid == PolicyStatement.allow_topic(QUEUE, ORDERS).sid
        assert orders_statement.sid != PolicyStatement.allow_topic(QUEUE, SHIPPING).sid
        assert orders_statement.sid.isalnum()

    def test_equality_is_structural(self, orders_statement):
        assert orders_statement == PolicyStatement.allow_topic(QUEUE, ORDERS)
        assert orders_statement != PolicyStatement.allow_topic(QUEUE, SHIPPING)
        assert len({orders_statement, PolicyStatement.allow_topic(QUEUE, ORDERS)}) == 1

    def test_from_own_document(self, orders_statement):
        assert PolicyStatement.from_document(orders_statement.to_document()) == orders_statement

    def test_sid_is_not_compared(self, orders_statement):
        document = orders_statement.to_document()
        document["Sid"] = "SomethingElse"
        assert PolicyStatement.from_document(document) == orders_statement

    def test_normalises_lists_and_case(self, orders_statement):
        document = {
            "Effect": "allow",
            "Principal": {"service": ["sns.amazonaws.com"]},
            "Action": ["SQS:SendMessage"],
            "Resource": [QUEUE],
            "Condition": {"ArnLike": {"AWS:SourceArn": [ORDERS]}},
        }
        assert PolicyStatement.from_document(document) == orders_statement

    def test_other_principal_is_not_equal(self, orders_statement, console_statement):
        parsed = PolicyStatement.from_document(console_statement)
        assert parsed is None or parsed != orders_statement

    @pytest.mark.parametrize("document", [
        "not a dict",
        {},
        {"Effect": "Allow", "NotPrincipal": {"Service": "sns.amazonaws.com"}},
        {
            "Effect": "Allow",
            "Principal": {"Service": "sns.amazonaws.com"},
            "Action": ["sqs:SendMessage", "sqs:ReceiveMessage"],
            "Resource": QUEUE,
            "Condition": {"ArnEquals": {"aws:SourceArn": ORDERS}},
        },
        {
            "Effect": "Allow",
            "Principal": {"Service": "sns.amazonaws.com"},
            "Action": "sqs:SendMessage",
            "Resource": QUEUE,
        },
    ])
    def test_unmodelled_shapes(self, document):
        assert PolicyStatement.from_document(document) is None


# ============================================================================
# POLICY DOCUMENT
# ============================================================================

class TestPolicy:

    def test_empty(self):
        policy = Policy.empty()
        assert policy.statement_count == 0
        assert json.loads(policy.to_json()) == {"Version": "2012-10-17", "Statement": []}

    def test_round_trip_keeps_header(self, console_statement):
        text = json.dumps({"Version": "2012-10-17", "Id": "billing-policy", "Statement": [console_statement]})
        document = json.loads(Policy.from_json(text).to_json())
        assert document["Id"] == "billing-policy"
        assert document["Statement"] == [console_statement]

    def test_lone_statement_object(self, orders_statement):
        text = json.dumps({"Statement": orders_statement.to_document()})
        policy = Policy.from_json(text)
        assert policy.statement_count == 1
        assert policy.contains(orders_statement)

    @pytest.mark.parametrize("text", ["[]", '"policy"', '{"Statement": 5}', "{not json"])
    def test_invalid_documents(self, text):
        with pytest.raises(ValueError):
            Policy.from_json(text)

    def test_contains(self, orders_statement):
        policy = Policy.empty().with_statement(orders_statement)
        assert policy.contains(orders_statement)
        assert not policy.contains(PolicyStatement.allow_topic(QUEUE, SHIPPING))

    def test_with_statement_preserves_existing(self, orders_statement, console_statement):
        original = Policy(statements=[console_statement])
        merged = original.with_statement(orders_statement)

        assert merged.statements[0] == console_statement
        assert merged.statements[1] == orders_statement.to_document()
        assert original.statement_count == 1

    def test_empty_statement_list_is_a_real_policy(self, orders_statement):
        """A policy with no statements still carries its header through a merge."""
        policy = Policy.from_json(json.dumps({"Version": "2008-10-17", "Id": "billing-policy", "Statement": []}))
        merged = json.loads(policy.with_statement(orders_statement).to_json())

        assert merged["Id"] == "billing-policy"
        assert merged["Version"] == "2008-10-17"
        assert merged["Statement"] == [orders_statement.to_document()]
