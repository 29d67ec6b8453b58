"""Core infrastructure: configuration, errors, persistence, cache, observability."""
