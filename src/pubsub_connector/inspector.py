"""
Topic and subscription existence checks.

Listings are walked tolerantly: an entry that fails while iterating is
skipped so it cannot hide the target entry further down the listing.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, Optional

from pubsub_connector.connection import BrokerConnection

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONSECUTIVE_ERRORS = 5


def iter_tolerant(entries: Iterable[Any], max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS) -> Iterator[Any]:
    """
    Yield listing entries, skipping any that raise during iteration.

    Iteration ends when the listing is exhausted or after
    ``max_consecutive_errors`` failures in a row.
    """
    iterator = iter(entries)
    errors = 0
    while True:
        try:
            entry = next(iterator)
        except StopIteration:
            return
        except Exception as e:
            errors += 1
            logger.debug("Skipping listing entry after error: %s", e)
            if errors >= max_consecutive_errors:
                logger.warning("Stopping listing after %d consecutive errors", errors)
                return
            continue
        errors = 0
        yield entry


class TopicInspector:
    """Answers whether the configured topic and subscription exist."""

    def __init__(
        self,
        connection: BrokerConnection,
        topic: str,
        subscription: str,
        max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS,
    ):
        self.connection = connection
        self.topic = topic
        self.subscription = subscription
        self.max_consecutive_errors = max_consecutive_errors

    def _find(self, listing: Callable[[str], Iterable[Any]], name: str) -> Optional[Any]:
        for entry in iter_tolerant(listing(self.connection.project_id), self.max_consecutive_errors):
            if getattr(entry, "name", None) == name:
                return entry
        return None

    def get_topic_info(self, topic: Optional[str] = None) -> Optional[Any]:
        """Return the descriptor of the topic (default: the configured one), or None."""
        transport = self.connection.transport
        name = transport.topic_path(self.connection.project_id, topic or self.topic)
        return self._find(transport.list_topics, name)

    def get_subscription_info(self, subscription: Optional[str] = None) -> Optional[Any]:
        """Return the descriptor of the subscription (default: the configured one), or None."""
        transport = self.connection.transport
        name = transport.subscription_path(self.connection.project_id, subscription or self.subscription)
        return self._find(transport.list_subscriptions, name)

    def list_subscriptions(self) -> list[Any]:
        """Every subscription of the project that iterates without error."""
        transport = self.connection.transport
        return list(
            iter_tolerant(transport.list_subscriptions(self.connection.project_id), self.max_consecutive_errors)
        )

    def topic_exists(self, topic: Optional[str] = None) -> bool:
        return self.get_topic_info(topic) is not None

    def subscription_exists(self, subscription: Optional[str] = None) -> bool:
        return self.get_subscription_info(subscription) is not None
