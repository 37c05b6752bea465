"""Tests for the request ID middleware."""

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from askjohn.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from askjohn.knowledge.base import KnowledgeBase, set_knowledge_base
from tests.conftest import FakeEmbeddings


@pytest.fixture(autouse=True)
def isolated_knowledge_base(sep_document):
    set_knowledge_base(KnowledgeBase(provider=FakeEmbeddings(), source_path=str(sep_document)))
    yield
    set_knowledge_base(None)


@pytest.fixture
def context_app() -> TestClient:
    """Minimal app that reports the logging context seen by a route."""
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/context")
    async def context():
        return structlog.contextvars.get_contextvars()

    return TestClient(app)


class TestRequestIDMiddleware:
    """Tests for RequestIDMiddleware."""

    def test_echoes_caller_id(self, client: TestClient):
        """A caller-supplied id is returned unchanged."""
        response = client.get("/healthz", headers={REQUEST_ID_HEADER: "turn-42"})
        assert response.headers[REQUEST_ID_HEADER] == "turn-42"

    def test_generates_id_when_missing(self, client: TestClient):
        """Without a header a hex UUID is generated."""
        response = client.get("/healthz")
        request_id = response.headers[REQUEST_ID_HEADER]
        assert len(request_id) == 32
        int(request_id, 16)

    def test_id_bound_to_log_context(self, context_app: TestClient):
        """Routes log with the request id bound."""
        response = context_app.get("/context", headers={REQUEST_ID_HEADER: "turn-7"})
        assert response.json()["request_id"] == "turn-7"

    def test_each_request_gets_its_own_id(self, context_app: TestClient):
        """An id from one request is not seen by the next."""
        context_app.get("/context", headers={REQUEST_ID_HEADER: "turn-8"})
        response = context_app.get("/context")
        assert response.json()["request_id"] != "turn-8"
        assert response.json()["request_id"] == response.headers[REQUEST_ID_HEADER]
