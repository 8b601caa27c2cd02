"""Odds feed schemas and sources."""
