"""Link classification, source fetching, and record normalization."""
