"""Parlay legs, combination arithmetic and the wager engine."""
