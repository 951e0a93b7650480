"""
docserve Configuration

Environment-based configuration for the document serving application.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class DocServeSettings(BaseSettings):
    """Settings loaded from environment variables."""

    # Application
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    HOST: str = Field(default="0.0.0.0", description="Server host")
    PORT: int = Field(default=8080, description="Server port")
    SERVICE_NAME: str = Field(default="docserve", description="Service name")
    SERVICE_VERSION: str = Field(default="0.1.0", description="Service version")

    # Monitoring
    ENABLE_METRICS: bool = Field(default=True, description="Enable Prometheus metrics")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Document serving
    ROUTE_TEMPLATE: str = Field(
        default="/swagger/{documentName}/swagger.json",
        description="Path template documents are served from",
    )
    DOCUMENT_NAME_PARAMETER: str = Field(
        default="documentName",
        description="Template placeholder that carries the document name",
    )
    HOST_OVERRIDE: str | None = Field(
        default=None,
        description="Externally visible host written into served documents",
    )
    DOCUMENTS: dict[str, str] = Field(
        default={"v1": "docserve API"},
        description="Served documents, name to title",
    )

    model_config = {
        "env_file": ".env",
        "env_prefix": "DOCSERVE_",
        "case_sensitive": True,
        "extra": "ignore",
    }


# Global settings instance
settings = DocServeSettings()
