"""Response models for transports that do not ship their own Pub/Sub types."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Message:
    """Message data container matching GCP Pub/Sub structure."""

    data: bytes
    message_id: str = ""
    publish_time: Optional[datetime] = None
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class ReceivedMessage:
    """Received message container matching GCP Pub/Sub structure."""

    message: Message
    ack_id: str


@dataclass
class PullResponse:
    """Pull response container matching GCP Pub/Sub structure."""

    received_messages: list[ReceivedMessage]


@dataclass
class Resource:
    """Topic or subscription descriptor returned by listings."""

    name: str
