"""Async client for the ResolveIt escalation workflow."""

__version__ = "0.1.0"
