"""Protocols describing the broker and application seams."""
