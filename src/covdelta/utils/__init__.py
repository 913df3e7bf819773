"""Shared utilities for covdelta."""
