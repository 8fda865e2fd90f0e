# ============================================================================
# TRANSPORT MESSAGE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Message exchanged with the host bus
# PURPOSE: Headers + opaque body, plus the receipt of a received message
# CREATED: 13 OCT 2026
# ============================================================================
"""
Transport Message

The unit the host bus hands to send() and gets back from receive().
Body bytes are opaque to the transport.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class TransportMessage(BaseModel):
    """Headers and body of a bus message."""

    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""

    # Set on received messages only; needed to complete/abandon
    receipt_handle: Optional[str] = Field(default=None, exclude=True)
    queue_url: Optional[str] = Field(default=None, exclude=True)

    @property
    def message_id(self) -> Optional[str]:
        return self.headers.get("message-id")


__all__ = ["TransportMessage"]
