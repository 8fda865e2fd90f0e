# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 12 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the transport.
"""

from core.config.defaults import (
    TransportOptions,
    get_defaults,
    MESSAGE_GROUP_HEADER,
    DEFAULT_MESSAGE_GROUP,
    RAW_MESSAGE_DELIVERY_ATTRIBUTE,
    POLICY_ATTRIBUTE,
)

__all__ = [
    "TransportOptions",
    "get_defaults",
    "MESSAGE_GROUP_HEADER",
    "DEFAULT_MESSAGE_GROUP",
    "RAW_MESSAGE_DELIVERY_ATTRIBUTE",
    "POLICY_ATTRIBUTE",
]
