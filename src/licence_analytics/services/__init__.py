"""Reporting engine services."""
