"""Query latency monitoring."""
