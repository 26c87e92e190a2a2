"""HTTP API for webhook management."""
