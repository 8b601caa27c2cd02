"""HTTP API for wagerlab."""
