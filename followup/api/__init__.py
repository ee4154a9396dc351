"""HTTP API exposing session-scoped follow-up operations."""
