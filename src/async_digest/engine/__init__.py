"""Digest analysis strategies: capable engine and deterministic fallback."""
