"""Prometheus metrics for document serving."""
