"""
Shared fixtures for gateway and mock-service tests.
"""
import json

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict
from fastapi.testclient import TestClient

import app as mock_app
from humancode_client import ClientConfig, HumanCodeClient


BASE_URL = "https://humancode.test"
APP_ID = "test-app"
APP_KEY = "test-secret"


def make_response(status_code, body=None, raw=None):
    """Build a requests.Response carrying a JSON (or raw) body."""
    resp = requests.Response()
    resp.status_code = status_code
    if raw is not None:
        resp._content = raw
    else:
        resp._content = json.dumps(body if body is not None else {}).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    resp.encoding = "utf-8"
    return resp


class ASGIAdapter(BaseAdapter):
    """requests transport adapter that forwards to a Starlette TestClient."""

    def __init__(self, test_client):
        super().__init__()
        self._tc = test_client

    def send(self, request, **kwargs):
        r = self._tc.request(
            request.method,
            request.url,
            content=request.body,
            headers=dict(request.headers),
        )
        resp = requests.Response()
        resp.status_code = r.status_code
        resp._content = r.content
        resp.headers = CaseInsensitiveDict(r.headers)
        resp.url = request.url
        resp.request = request
        resp.encoding = "utf-8"
        return resp

    def close(self):
        pass


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL, app_id=APP_ID, app_key=APP_KEY)


@pytest.fixture
def session():
    return requests.Session()


@pytest.fixture
def client(config, session):
    return HumanCodeClient(config, session=session)


@pytest.fixture(autouse=True)
def reset_mock_store():
    mock_app.reset()
    yield
    mock_app.reset()


@pytest.fixture
def mock_service():
    return TestClient(mock_app.app)


@pytest.fixture
def mock_backed_client(mock_service):
    """HumanCodeClient whose transport is the in-process mock HumanCode service."""
    s = requests.Session()
    s.mount("http://mock-humancode", ASGIAdapter(mock_service))
    cfg = ClientConfig(
        base_url="http://mock-humancode",
        app_id=mock_app.MOCK_APP_ID,
        app_key=mock_app.MOCK_APP_KEY,
    )
    return HumanCodeClient(cfg, session=s)
