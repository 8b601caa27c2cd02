"""SQLAlchemy-backed snapshot persistence."""
