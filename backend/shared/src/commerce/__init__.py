"""Shared domain layer for event ticketing and merchandise checkout."""

__version__ = "0.1.0"
