"""Starlette middleware for the API."""
