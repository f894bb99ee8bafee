"""Fixtures for RabbitMQ integration tests."""

import subprocess
import time
import uuid

import pika
import pytest

RABBITMQ_PORT = 5673  # Non-default port to avoid conflicts


@pytest.fixture(scope="session")
def rabbitmq_container():
    """Start RabbitMQ Docker container for test session."""
    container_name = "pubsub-connector-rabbitmq-test"

    # Clean up any existing container
    subprocess.run(["docker", "rm", "-f", container_name], capture_output=True)

    subprocess.run(
        [
            "docker",
            "run",
            "-d",
            "--name",
            container_name,
            "-p",
            f"{RABBITMQ_PORT}:5672",
            "rabbitmq:3-management",
        ],
        check=True,
        capture_output=True,
    )

    # Wait for RabbitMQ to be ready
    time.sleep(10)

    yield

    subprocess.run(["docker", "stop", container_name], capture_output=True)
    subprocess.run(["docker", "rm", container_name], capture_output=True)


@pytest.fixture(scope="session")
def rabbitmq_parameters(rabbitmq_container) -> pika.ConnectionParameters:
    """Connection parameters for the test broker."""
    return pika.ConnectionParameters(host="localhost", port=RABBITMQ_PORT)


@pytest.fixture(scope="session")
def rabbitmq_connection(rabbitmq_parameters) -> pika.BlockingConnection:
    """Provide a RabbitMQ connection for test setup and verification."""
    return pika.BlockingConnection(rabbitmq_parameters)


@pytest.fixture
def test_queue(rabbitmq_connection) -> str:
    """Create a unique test queue and clean up after test."""
    queue_name = f"test-queue-{uuid.uuid4()}"
    channel = rabbitmq_connection.channel()
    channel.queue_declare(queue=queue_name, durable=True)

    yield queue_name

    channel.queue_delete(queue=queue_name)
