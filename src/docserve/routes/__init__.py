"""Built-in API routes."""
