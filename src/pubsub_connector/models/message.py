"""Inbound message value and dispatch result types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class InboundMessage:
    """Immutable view of a message delivered by the broker."""

    message_id: str
    data: bytes
    publish_time: Optional[datetime] = None
    attributes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Copy so later mutation of the broker's mapping cannot leak in
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @classmethod
    def from_received(cls, received: Any) -> "InboundMessage":
        """Wrap a broker message exposing message_id, data, publish_time and attributes."""
        return cls(
            message_id=received.message_id,
            data=bytes(received.data),
            publish_time=received.publish_time,
            attributes=dict(received.attributes or {}),
        )

    def text(self, encoding: str = "utf-8") -> str:
        """Decode the payload as text."""
        return self.data.decode(encoding)

    def parse(self, model: Type[ModelT]) -> ModelT:
        """Validate the JSON payload against a Pydantic model."""
        return model.model_validate_json(self.data)


class DeliveryOutcome(str, Enum):
    """Final broker-facing outcome of a dispatched message."""

    ACKED = "acked"
    NACKED = "nacked"


class AckMode(str, Enum):
    """When the coordinator acknowledges a message to the broker."""

    DEFERRED = "deferred"  # ack once a consumer accepts it
    IMMEDIATE = "immediate"  # ack on receipt, before dispatch


class CoordinatorState(str, Enum):
    """Lifecycle state of the delivery coordinator."""

    IDLE = "idle"
    RECEIVING = "receiving"
