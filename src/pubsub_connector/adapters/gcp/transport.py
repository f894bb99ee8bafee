"""Google Cloud Pub/Sub transport implementing BrokerTransport protocol."""

from concurrent.futures import Future
from typing import Any, Callable, Iterable, Mapping

from google.cloud import pubsub_v1
from google.oauth2 import service_account

from pubsub_connector.protocols.transport import AcknowledgeRequest, ListRequest, PullRequest


class GooglePubSubTransport:
    """
    Google Cloud Pub/Sub transport implementing BrokerTransport protocol.

    Wraps one PublisherClient and one SubscriberClient. Both clients are safe
    to share between publishing threads and the streaming pull.
    """

    def __init__(
        self,
        publisher: pubsub_v1.PublisherClient,
        subscriber: pubsub_v1.SubscriberClient,
    ):
        self._publisher = publisher
        self._subscriber = subscriber

    @classmethod
    def from_service_account_file(cls, path: str) -> "GooglePubSubTransport":
        """Authenticate both clients with a service account key file."""
        credentials = service_account.Credentials.from_service_account_file(path)
        return cls(
            publisher=pubsub_v1.PublisherClient(credentials=credentials),
            subscriber=pubsub_v1.SubscriberClient(credentials=credentials),
        )

    def topic_path(self, project: str, topic: str) -> str:
        if topic.startswith("projects/"):
            return topic
        return f"projects/{project}/topics/{topic}"

    def subscription_path(self, project: str, subscription: str) -> str:
        if subscription.startswith("projects/"):
            return subscription
        return f"projects/{project}/subscriptions/{subscription}"

    def publish(self, topic: str, data: bytes, attributes: Mapping[str, str]) -> "Future[str]":
        """
        Publish a message to a Pub/Sub topic.

        Args:
            topic: Full topic path (e.g., 'projects/PROJECT_ID/topics/TOPIC_NAME')
            data: Message data as bytes
            attributes: Message attributes

        Returns:
            Publish future resolving to the server-generated message ID
        """
        return self._publisher.publish(topic, data, **dict(attributes))

    def stream_pull(
        self,
        subscription: str,
        callback: Callable[[Any], None],
        *,
        max_outstanding_messages: int,
    ) -> Any:
        flow_control = pubsub_v1.types.FlowControl(max_messages=max_outstanding_messages)
        return self._subscriber.subscribe(
            subscription,
            callback=callback,
            flow_control=flow_control,
            await_callbacks_on_shutdown=True,
        )

    def pull(self, request: PullRequest, timeout: float) -> Any:
        return self._subscriber.pull(request=request, timeout=timeout)

    def acknowledge(self, request: AcknowledgeRequest) -> None:
        if request["ack_ids"]:
            self._subscriber.acknowledge(request=request)

    def list_topics(self, project: str) -> Iterable[Any]:
        request: ListRequest = {"project": f"projects/{project}"}
        return self._publisher.list_topics(request=request)

    def list_subscriptions(self, project: str) -> Iterable[Any]:
        request: ListRequest = {"project": f"projects/{project}"}
        return self._subscriber.list_subscriptions(request=request)

    def close(self) -> None:
        try:
            self._publisher.stop()
        finally:
            self._subscriber.close()
