"""FastAPI application for the checkout, webhook and order REST API."""

__version__ = "0.1.0"
