"""docserve test fixtures."""

from __future__ import annotations

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from docserve.annotations import ResponseAnnotationRegistry
from docserve.config import DocServeSettings
from docserve.main import create_app


class Pet(BaseModel):
    id: int
    name: str


class Problem(BaseModel):
    title: str
    status: int


@pytest.fixture
def annotations() -> ResponseAnnotationRegistry:
    """Empty response annotation registry."""
    return ResponseAnnotationRegistry()


@pytest.fixture
def pets_router(annotations: ResponseAnnotationRegistry) -> APIRouter:
    """Router with handler-level and group-level response annotations."""
    router = APIRouter(prefix="/pets", tags=["pets"])

    @router.get("/{pet_id}")
    @annotations.responds(200, "The pet", Pet)
    @annotations.responds(404, "No such pet")
    async def get_pet(pet_id: int):
        return {"id": pet_id, "name": "Rex"}

    @router.post("", status_code=201, response_model=Pet)
    async def create_pet(pet: Pet) -> Pet:
        return pet

    annotations.declare_group("pets", 500, "Unexpected error", Problem)

    return router


@pytest.fixture
def test_settings() -> DocServeSettings:
    """Settings with metrics disabled."""
    return DocServeSettings(ENABLE_METRICS=False)


@pytest.fixture
def app(
    pets_router: APIRouter,
    annotations: ResponseAnnotationRegistry,
    test_settings: DocServeSettings,
) -> FastAPI:
    """Application serving the pets API documents."""
    return create_app(
        routers=[pets_router],
        annotations=annotations,
        app_settings=test_settings,
    )


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)
