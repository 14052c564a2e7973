"""
Общие фикстуры тестов.

Внешний сервис Mathpix заменяется httpx.MockTransport: каждый запрос
записывается, ответ берётся из очереди или из ответа по умолчанию.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from mathocr.config import Settings
from mathocr.main import create_app

PDF_BYTES = b"%PDF-1.7\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"
UPSTREAM_URL = "https://mathpix.test/v3/pdf"


class FakeUpstream:
    """Поддельный Mathpix: записывает запросы, отдаёт заготовленные ответы."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: list = []
        self.default = httpx.Response(200, json={"pdf_id": "abc123", "status": "queued"})

    def queue(self, response) -> None:
        """Ответ (httpx.Response) или исключение для следующего запроса."""
        self.responses.append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides) -> Settings:
    values = {
        "app_id": "test-app-id",
        "app_key": "test-app-key",
        "api_url": UPSTREAM_URL,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def app(settings, upstream):
    return create_app(settings, transport=upstream.transport)


@pytest.fixture
def client(app):
    return TestClient(app)
