"""Utility helpers shared by services and the API layer."""
