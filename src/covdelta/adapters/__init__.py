"""Adapters for third-party coverage tool output."""
