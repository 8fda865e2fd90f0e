# ============================================================================
# QUEUE ACCESS POLICY MODELS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - IAM policy documents attached to SQS queues
# PURPOSE: Build, compare and merge the SNS -> SQS allow statement
# CREATED: 13 OCT 2026
# ============================================================================
"""
Queue Access Policy Models

An SQS queue only accepts SNS deliveries when its Policy attribute holds
a statement like:

    {
        "Effect": "Allow",
        "Principal": {"Service": "sns.amazonaws.com"},
        "Action": "sqs:SendMessage",
        "Resource": "<queue arn>",
        "Condition": {"ArnEquals": {"aws:SourceArn": "<topic arn>"}}
    }

PolicyStatement is that statement as a value object; equality is
structural over effect, principal, action, resource and source ARN (the
Sid is not compared). Policy keeps every other statement as the raw dict
it was read as, so merging never rewrites grants that belong to someone
else.
"""

import hashlib
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

POLICY_VERSION = "2012-10-17"
SNS_SERVICE_PRINCIPAL = "sns.amazonaws.com"
SEND_MESSAGE_ACTION = "sqs:SendMessage"
SOURCE_ARN_KEY = "aws:SourceArn"

# Without wildcards both operators mean "source is exactly this ARN"
_SOURCE_ARN_OPERATORS = ("arnequals", "arnlike")

# Statement keys that change the meaning of a statement we cannot model
_UNMODELLED_KEYS = ("NotPrincipal", "NotAction", "NotResource")


def _single(value: Any) -> Optional[str]:
    """Collapse a scalar or single-element list to a string."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and len(value) == 1 and isinstance(value[0], str):
        return value[0]
    return None


def _lookup_ci(mapping: Dict[str, Any], key: str) -> Any:
    for candidate, value in mapping.items():
        if candidate.lower() == key.lower():
            return value
    return None


class PolicyStatement(BaseModel):
    """Allow statement granting an SNS topic SendMessage on one queue."""

    effect: str = "Allow"
    principal_service: str = SNS_SERVICE_PRINCIPAL
    action: str = SEND_MESSAGE_ACTION
    resource: str = Field(..., description="Queue ARN")
    source_arn: str = Field(..., description="Topic ARN")

    model_config = {"frozen": True}

    def _key(self) -> tuple:
        return (self.effect, self.principal_service, self.action, self.resource, self.source_arn)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PolicyStatement):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    @classmethod
    def allow_topic(cls, queue_arn: str, topic_arn: str) -> "PolicyStatement":
        """The statement that lets topic_arn deliver to queue_arn."""
        return cls(resource=queue_arn, source_arn=topic_arn)

    @property
    def sid(self) -> str:
        """Deterministic statement id for (queue, topic)."""
        digest = hashlib.sha256(f"{self.resource}|{self.source_arn}".encode("utf-8")).hexdigest()
        return f"SimpleBusTopic{digest[:24]}"

    def to_document(self) -> Dict[str, Any]:
        """Render as an IAM policy statement."""
        return {
            "Sid": self.sid,
            "Effect": self.effect,
            "Principal": {"Service": self.principal_service},
            "Action": self.action,
            "Resource": self.resource,
            "Condition": {"ArnEquals": {SOURCE_ARN_KEY: self.source_arn}},
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> Optional["PolicyStatement"]:
        """
        Normalise an IAM statement into a PolicyStatement.

        Returns None for statements of any other shape (multiple principals,
        wildcard principals, several conditions, Not* keys, ...). Those can
        never equal a required statement and are carried through untouched.
        """
        if not isinstance(document, dict):
            return None
        if any(key in document for key in _UNMODELLED_KEYS):
            return None

        effect = _single(document.get("Effect"))

        principal = document.get("Principal")
        service = None
        if isinstance(principal, dict) and len(principal) == 1:
            service = _single(_lookup_ci(principal, "Service"))

        action = _single(document.get("Action"))
        if action and action.lower() == SEND_MESSAGE_ACTION.lower():
            action = SEND_MESSAGE_ACTION

        resource = _single(document.get("Resource"))

        source_arn = None
        condition = document.get("Condition")
        if isinstance(condition, dict) and len(condition) == 1:
            operator, clause = next(iter(condition.items()))
            if operator.lower() in _SOURCE_ARN_OPERATORS and isinstance(clause, dict) and len(clause) == 1:
                source_arn = _single(_lookup_ci(clause, SOURCE_ARN_KEY))

        if not all((effect, service, action, resource, source_arn)):
            return None

        return cls(
            effect=effect.capitalize(),
            principal_service=service,
            action=action,
            resource=resource,
            source_arn=source_arn,
        )


class Policy(BaseModel):
    """
    An IAM policy document.

    header holds every top-level key except Statement (Version, Id, ...),
    statements the ordered raw statement dicts.
    """

    header: Dict[str, Any] = Field(default_factory=lambda: {"Version": POLICY_VERSION})
    statements: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "Policy":
        return cls()

    @classmethod
    def from_json(cls, text: str) -> "Policy":
        """
        Parse a policy document.

        Raises:
            ValueError: If text is not a JSON object
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("policy document must be a JSON object")

        statements = data.pop("Statement", [])
        # IAM allows a lone statement object in place of the list
        if isinstance(statements, dict):
            statements = [statements]
        if not isinstance(statements, list):
            raise ValueError("policy Statement must be a list or object")

        data.setdefault("Version", POLICY_VERSION)
        return cls(header=data, statements=statements)

    def to_json(self) -> str:
        document = dict(self.header)
        document["Statement"] = list(self.statements)
        return json.dumps(document)

    def contains(self, statement: PolicyStatement) -> bool:
        """True if a structurally-equal statement is already present."""
        return any(PolicyStatement.from_document(raw) == statement for raw in self.statements)

    def with_statement(self, statement: PolicyStatement) -> "Policy":
        """New policy with statement appended; existing statements are untouched."""
        return Policy(
            header=dict(self.header),
            statements=[*self.statements, statement.to_document()],
        )

    @property
    def statement_count(self) -> int:
        return len(self.statements)


__all__ = [
    "PolicyStatement",
    "Policy",
    "POLICY_VERSION",
    "SNS_SERVICE_PRINCIPAL",
    "SEND_MESSAGE_ACTION",
]
