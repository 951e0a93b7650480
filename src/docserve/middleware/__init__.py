"""HTTP middleware for document serving, logging and metrics."""
