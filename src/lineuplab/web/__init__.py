"""HTTP API for the lineup pairing engine."""
