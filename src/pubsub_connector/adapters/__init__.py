"""Broker transport adapters."""
