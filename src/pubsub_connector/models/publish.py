"""Result models for batch publishing."""

from dataclasses import dataclass, field
from typing import Optional

from pubsub_connector.exceptions import PublishError


@dataclass(frozen=True)
class PublishOutcome:
    """Outcome of a single payload inside a batch publish."""

    index: int
    message_id: Optional[str] = None
    error: Optional[PublishError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchPublishResult:
    """
    Ordered per-item outcomes of a batch publish.

    A failed item never stops the batch; callers decide whether partial
    success is acceptable via ``ok`` or ``raise_for_error()``.
    """

    outcomes: list[PublishOutcome] = field(default_factory=list)

    @property
    def message_ids(self) -> list[str]:
        """Broker-assigned ids of the successful items, in submission order."""
        return [o.message_id for o in self.outcomes if o.message_id is not None]

    @property
    def errors(self) -> list[PublishError]:
        return [o.error for o in self.outcomes if o.error is not None]

    @property
    def last_error(self) -> Optional[PublishError]:
        errors = self.errors
        return errors[-1] if errors else None

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_error(self) -> None:
        """Raise the last PublishError encountered, if any item failed."""
        if self.last_error is not None:
            raise self.last_error
