"""Period-scoped risk budget and bettor settings."""
