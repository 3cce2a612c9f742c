"""AI provider aggregation layer."""
