"""Data models shared across the connector."""
