"""HTTP API for the forum."""
