import json
from unittest.mock import patch

import pytest
import requests


def _make_response(status_code=200, body=None, content_type="application/json"):
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if body is None:
        response._content = b""
    else:
        response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
        response.headers["Content-Type"] = content_type
    return response


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def mock_request():
    """Patch the transport; calls are recorded as (session, method, url, **kwargs)."""
    with patch.object(requests.Session, "request", autospec=True) as mock:
        yield mock


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("time.sleep") as mock:
        yield mock


@pytest.fixture
def credentials():
    return {
        "client_id": "client-id",
        "client_secret": "client-secret",
        "access_token": "old-access",
        "refresh_token": "old-refresh",
        "domain_url": "https://acme.pipedrive.com",
    }
