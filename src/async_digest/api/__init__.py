"""HTTP boundary for digest generation."""
