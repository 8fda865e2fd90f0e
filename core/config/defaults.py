# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Transport option defaults
# PURPOSE: Centralized defaults for queue/topic creation and policy checks
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Defaults

Options controlling how the unified transport provisions and wires its
SQS queue and SNS topic. Every value can be overridden via environment
variables (SIMPLEBUS_*) or by constructing the dataclass directly.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass
from typing import Optional


# Header carrying the FIFO message group; topics ending in .fifo require one
MESSAGE_GROUP_HEADER = "simplebus-message-group"
DEFAULT_MESSAGE_GROUP = "default"

RAW_MESSAGE_DELIVERY_ATTRIBUTE = "RawMessageDelivery"
POLICY_ATTRIBUTE = "Policy"


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class TransportOptions:
    """
    Options for the unified SQS/SNS transport.

    input_queue_address names the transport's own queue (and, unless
    input_topic_address is given, its own topic of the same name). Leave it
    empty for a send-only transport.
    """
    input_queue_address: str = ""
    input_topic_address: Optional[str] = None

    # Provisioning
    create_queues: bool = True
    create_topics: bool = True
    auto_attach_services: bool = False

    # Access policy reconciliation
    disable_access_policy_checks: bool = False

    # Subscriptions
    raw_message_delivery: bool = True

    # Receiving
    receive_wait_time_seconds: int = 1
    auto_complete: bool = True

    # FIFO topics
    use_fifo: bool = False
    content_based_deduplication: bool = False

    def __post_init__(self):
        if not 0 <= self.receive_wait_time_seconds <= 20:
            raise ValueError(
                f"receive_wait_time_seconds must be between 0 and 20, "
                f"got {self.receive_wait_time_seconds}"
            )
        if self.content_based_deduplication and not self.use_fifo:
            raise ValueError("content_based_deduplication requires use_fifo")

    @property
    def policy_checks_enabled(self) -> bool:
        return not self.disable_access_policy_checks

    @classmethod
    def from_env(cls) -> "TransportOptions":
        """
        Load options from environment variables.

            SIMPLEBUS_INPUT_QUEUE: Own queue name, ARN or URL
            SIMPLEBUS_INPUT_TOPIC: Own topic name or ARN (defaults to queue name)
            SIMPLEBUS_CREATE_QUEUES / SIMPLEBUS_CREATE_TOPICS: Allow creation
            SIMPLEBUS_AUTO_ATTACH: Subscribe own queue to own topic
            SIMPLEBUS_DISABLE_POLICY_CHECKS: Skip access policy reconciliation
            SIMPLEBUS_RAW_DELIVERY: Set RawMessageDelivery on subscriptions
            SIMPLEBUS_RECEIVE_WAIT_SECONDS: Long-poll wait (0-20)
            SIMPLEBUS_AUTO_COMPLETE: Delete messages as soon as they are received
            SIMPLEBUS_USE_FIFO / SIMPLEBUS_CONTENT_DEDUP: FIFO topic creation
        """
        return cls(
            input_queue_address=os.getenv("SIMPLEBUS_INPUT_QUEUE", ""),
            input_topic_address=os.getenv("SIMPLEBUS_INPUT_TOPIC") or None,
            create_queues=_env_flag("SIMPLEBUS_CREATE_QUEUES", True),
            create_topics=_env_flag("SIMPLEBUS_CREATE_TOPICS", True),
            auto_attach_services=_env_flag("SIMPLEBUS_AUTO_ATTACH", False),
            disable_access_policy_checks=_env_flag("SIMPLEBUS_DISABLE_POLICY_CHECKS", False),
            raw_message_delivery=_env_flag("SIMPLEBUS_RAW_DELIVERY", True),
            receive_wait_time_seconds=int(os.getenv("SIMPLEBUS_RECEIVE_WAIT_SECONDS", "1")),
            auto_complete=_env_flag("SIMPLEBUS_AUTO_COMPLETE", True),
            use_fifo=_env_flag("SIMPLEBUS_USE_FIFO", False),
            content_based_deduplication=_env_flag("SIMPLEBUS_CONTENT_DEDUP", False),
        )


_defaults: Optional[TransportOptions] = None


def get_defaults() -> TransportOptions:
    """Get the process-wide defaults loaded from the environment."""
    global _defaults
    if _defaults is None:
        _defaults = TransportOptions.from_env()
    return _defaults


__all__ = [
    "TransportOptions",
    "get_defaults",
    "MESSAGE_GROUP_HEADER",
    "DEFAULT_MESSAGE_GROUP",
    "RAW_MESSAGE_DELIVERY_ATTRIBUTE",
    "POLICY_ATTRIBUTE",
]
