"""HTTP API for the Community Hub service."""
