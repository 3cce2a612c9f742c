"""HTTP surface for the AI aggregation layer."""
