"""
docserve

Serves Swagger-style API description documents for a FastAPI application and
merges declared response metadata into each documented operation.
"""

__version__ = "0.1.0"
