"""
Tests for the document serving middleware.

Covers template matching, passthrough, provider invocation, pre-serialize
filters and failure propagation.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import JSONResponse

from docserve.annotations import ResponseAnnotationRegistry
from docserve.descriptors import OperationDescriptor
from docserve.exceptions import PreSerializeFilterError, UnknownDocumentError
from docserve.filters import set_host_from_forwarded_headers
from docserve.middleware.swagger import (
    DOCUMENT_MEDIA_TYPE,
    RouteTemplateMatcher,
    SwaggerMiddleware,
    SwaggerOptions,
)
from docserve.models.document import Document, Info
from docserve.provider import DocumentInfo, RouteDocumentProvider

PASSTHROUGH = {"passthrough": True}


class RecordingProvider:
    """Provider double recording every call."""

    def __init__(self, document_names: tuple[str, ...] = ("v1",)):
        self.document_names = list(document_names)
        self.calls: list[tuple[str, str | None, str | None]] = []

    def get_document(
        self,
        document_name: str,
        host: str | None = None,
        base_path: str | None = None,
    ) -> Document:
        self.calls.append((document_name, host, base_path))
        if document_name not in self.document_names:
            raise UnknownDocumentError(document_name)
        return Document(
            info=Info(title=document_name, version="1.0"),
            host=host,
            base_path=base_path,
        )


def build_app(provider, options: SwaggerOptions | None = None) -> FastAPI:
    app = FastAPI(openapi_url=None)

    @app.get("/other")
    async def other():
        return PASSTHROUGH

    @app.post("/swagger/v1/swagger.json")
    async def post_document():
        return PASSTHROUGH

    @app.get("/swagger/v1/other.json")
    async def other_file():
        return PASSTHROUGH

    app.add_middleware(SwaggerMiddleware, provider=provider, options=options)
    return app


def make_request(path: str, method: str = "GET", root_path: str = "", headers=None) -> Request:
    return Request(
        {
            "type": "http",
            "method": method,
            "path": path,
            "root_path": root_path,
            "query_string": b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        }
    )


@pytest.fixture
def provider() -> RecordingProvider:
    return RecordingProvider(("v1", "v2"))


class TestRouteTemplateMatcher:
    def test_match_extracts_named_segment(self):
        matcher = RouteTemplateMatcher("/swagger/{documentName}/swagger.json")

        assert matcher.match("/swagger/v1/swagger.json") == {"documentName": "v1"}

    @pytest.mark.parametrize(
        "path",
        ["/swagger/v1/swagger.yaml", "/swagger/swagger.json", "/swagger/a/b/swagger.json", "/"],
    )
    def test_non_matching_paths(self, path):
        matcher = RouteTemplateMatcher("/swagger/{documentName}/swagger.json")

        assert matcher.match(path) is None

    def test_literal_dot_is_not_a_wildcard(self):
        matcher = RouteTemplateMatcher("/swagger/{documentName}/swagger.json")

        assert matcher.match("/swagger/v1/swaggerXjson") is None


def test_serves_document(provider):
    client = TestClient(build_app(provider))

    response = client.get("/swagger/v1/swagger.json")

    assert response.status_code == 200
    assert response.headers["content-type"] == DOCUMENT_MEDIA_TYPE
    body = response.json()
    assert body["info"]["title"] == "v1"
    assert body["paths"] == {}
    assert provider.calls == [("v1", None, None)]


@pytest.mark.parametrize(
    "method, path",
    [
        ("POST", "/swagger/v1/swagger.json"),
        ("GET", "/other"),
        ("GET", "/swagger/v1/other.json"),
    ],
)
def test_passthrough_without_provider_call(provider, method, path):
    client = TestClient(build_app(provider))

    response = client.request(method, path)

    assert response.status_code == 200
    assert response.json() == PASSTHROUGH
    assert provider.calls == []


def test_unmatched_path_reaches_router(provider):
    client = TestClient(build_app(provider))

    response = client.get("/swagger/v1")

    assert response.status_code == 404
    assert provider.calls == []


def test_unknown_document_propagates(provider):
    client = TestClient(build_app(provider))

    with pytest.raises(UnknownDocumentError):
        client.get("/swagger/nonexistent/swagger.json")

    assert provider.calls == [("nonexistent", None, None)]


def test_custom_template(provider):
    options = SwaggerOptions(route_template="/docs/{documentName}/spec.json")
    client = TestClient(build_app(provider, options))

    assert client.get("/docs/v2/spec.json").json()["info"]["title"] == "v2"
    assert client.get("/swagger/v1/other.json").json() == PASSTHROUGH


def test_template_without_document_name_passes_through(provider):
    options = SwaggerOptions(route_template="/swagger/{name}/other.json")
    client = TestClient(build_app(provider, options))

    response = client.get("/swagger/v1/other.json")

    assert response.json() == PASSTHROUGH
    assert provider.calls == []


def test_custom_parameter_name(provider):
    options = SwaggerOptions(
        route_template="/swagger/{name}/other.json", document_name_parameter="name"
    )
    client = TestClient(build_app(provider, options))

    assert client.get("/swagger/v2/other.json").json()["info"]["title"] == "v2"


def test_host_override_threaded_to_provider(provider):
    options = SwaggerOptions(host="api.example.com")
    client = TestClient(build_app(provider, options))

    body = client.get("/swagger/v1/swagger.json").json()

    assert provider.calls == [("v1", "api.example.com", None)]
    assert body["host"] == "api.example.com"


def test_pre_serialize_filters_run_in_order(provider):
    seen = []

    def tag_tenant(document, request):
        seen.append("tenant")
        document.info.description = request.headers.get("x-tenant")

    def append_suffix(document, request):
        seen.append("suffix")
        document.info.description += "!"

    options = SwaggerOptions(pre_serialize_filters=(tag_tenant, append_suffix))
    client = TestClient(build_app(provider, options))

    body = client.get("/swagger/v1/swagger.json", headers={"X-Tenant": "acme"}).json()

    assert seen == ["tenant", "suffix"]
    assert body["info"]["description"] == "acme!"


def test_failing_filter_aborts_request(provider):
    def broken(document, request):
        raise RuntimeError("boom")

    options = SwaggerOptions(pre_serialize_filters=(broken,))
    client = TestClient(build_app(provider, options))

    with pytest.raises(PreSerializeFilterError) as exc_info:
        client.get("/swagger/v1/swagger.json")

    assert exc_info.value.filter_name == "broken"
    assert exc_info.value.document_name == "v1"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_forwarded_headers_filter(provider):
    options = SwaggerOptions(pre_serialize_filters=(set_host_from_forwarded_headers,))
    client = TestClient(build_app(provider, options))

    body = client.get(
        "/swagger/v1/swagger.json",
        headers={"X-Forwarded-Host": "docs.example.com, proxy", "X-Forwarded-Prefix": "/edge/"},
    ).json()

    assert body["host"] == "docs.example.com"
    assert body["basePath"] == "/edge"


class TestDispatch:
    @pytest.fixture
    def middleware(self, provider) -> SwaggerMiddleware:
        async def app(scope, receive, send):
            raise AssertionError("inner app must not be called directly")

        return SwaggerMiddleware(app, provider=provider)

    def test_requested_document(self, middleware):
        assert middleware.requested_document(make_request("/swagger/v1/swagger.json")) == "v1"
        assert middleware.requested_document(make_request("/swagger/v1/swagger.json", "HEAD")) is None
        assert middleware.requested_document(make_request("/nope")) is None

    def test_root_path_is_stripped(self, middleware):
        request = make_request("/api/swagger/v1/swagger.json", root_path="/api")

        assert middleware.requested_document(request) == "v1"

    @pytest.mark.asyncio
    async def test_root_path_passed_as_base_path(self, middleware, provider):
        async def call_next(request):
            raise AssertionError("document requests must not pass through")

        request = make_request("/api/swagger/v2/swagger.json", root_path="/api")

        response = await middleware.dispatch(request, call_next)

        assert response.status_code == 200
        assert provider.calls == [("v2", None, "/api")]

    @pytest.mark.asyncio
    async def test_passthrough_returns_next_response(self, middleware, provider):
        marker = JSONResponse(PASSTHROUGH)

        async def call_next(request):
            return marker

        response = await middleware.dispatch(make_request("/other"), call_next)

        assert response is marker
        assert provider.calls == []


@pytest.mark.asyncio
async def test_concurrent_requests_are_independent():
    annotations = ResponseAnnotationRegistry()
    annotations.declare("get_pet", 200, "The pet")
    annotations.declare("list_stores", 200, "Stores")
    provider = RouteDocumentProvider(
        documents={
            "pets": DocumentInfo(title="Pets", version="1.0"),
            "stores": DocumentInfo(title="Stores", version="1.0"),
        },
        descriptors=[
            OperationDescriptor(path="/pets/{id}", method="GET", route_id="get_pet", group_name="pets"),
            OperationDescriptor(path="/stores", method="GET", route_id="list_stores", group_name="stores"),
        ],
        annotations=annotations,
    )

    def stamp_path(document, request):
        document.info.description = request.url.path
        for _, _, operation in document.iter_operations():
            operation.responses["200"].description += f" ({request.url.path})"

    app = build_app(provider, SwaggerOptions(pre_serialize_filters=(stamp_path,)))
    paths = [f"/swagger/{name}/swagger.json" for name in ("pets", "stores") * 10]

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        responses = await asyncio.gather(*(client.get(path) for path in paths))

    for path, response in zip(paths, responses):
        body = response.json()
        assert response.status_code == 200
        assert body["info"]["description"] == path
        [(_, item)] = body["paths"].items()
        assert item["get"]["responses"]["200"]["description"].count("(") == 1
        if "pets" in path:
            assert list(body["paths"]) == ["/pets/{id}"]
        else:
            assert list(body["paths"]) == ["/stores"]
