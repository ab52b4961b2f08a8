"""Core models, errors, cancellation and logging."""
