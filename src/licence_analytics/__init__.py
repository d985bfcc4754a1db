"""Licence reporting and analytics API."""
