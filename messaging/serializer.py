# ============================================================================
# TRANSPORT MESSAGE SERIALIZER
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Core - Wire encoding of headers + body
# PURPOSE: One JSON envelope for both SQS sends and SNS publishes
# CREATED: 15 OCT 2026
# ============================================================================
"""
Transport Message Serializer

Wire format (a JSON string, valid as both an SQS body and an SNS message):

    {"headers": {"message-id": "..."}, "body": "<base64 of body bytes>"}

When a subscription does not use raw message delivery, SNS wraps the
published string in its own notification document; decode() unwraps that
first, so queues subscribed either way yield the same TransportMessage.
"""

import base64
import binascii
import json
from typing import Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from core.exceptions import MessageDecodeError
from core.models import TransportMessage

SNS_NOTIFICATION_TYPE = "Notification"


class WireEnvelope(BaseModel):
    """JSON envelope on the wire."""

    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""


class TransportMessageSerializer:
    """Encode/decode TransportMessage to and from the wire envelope."""

    def encode(self, message: TransportMessage) -> str:
        envelope = WireEnvelope(
            headers=dict(message.headers),
            body=base64.b64encode(message.body).decode("ascii"),
        )
        return envelope.model_dump_json()

    def decode(self, wire: str, message_id: Optional[str] = None) -> TransportMessage:
        """
        Decode a wire string.

        Raises:
            MessageDecodeError: If wire is not an envelope (or an SNS
                notification wrapping one)
        """
        if wire is None:
            raise MessageDecodeError("message body is empty", message_id)

        wire = self._unwrap_notification(wire)

        try:
            envelope = WireEnvelope.model_validate_json(wire)
            body = base64.b64decode(envelope.body.encode("ascii"), validate=True)
        except (ValidationError, binascii.Error, UnicodeEncodeError) as e:
            raise MessageDecodeError(str(e), message_id) from e

        return TransportMessage(headers=envelope.headers, body=body)

    @staticmethod
    def _unwrap_notification(wire: str) -> str:
        try:
            document = json.loads(wire)
        except ValueError:
            return wire
        if (
            isinstance(document, dict)
            and document.get("Type") == SNS_NOTIFICATION_TYPE
            and isinstance(document.get("Message"), str)
        ):
            return document["Message"]
        return wire


__all__ = ["TransportMessageSerializer", "WireEnvelope"]
