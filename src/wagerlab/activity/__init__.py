"""Append-only activity log for budget-affecting actions."""
