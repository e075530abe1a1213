# tests/test_functions_client.py
from http import HTTPStatus
from typing import Any, Dict, Optional

import httpx
import pytest

from standup_sync.core.exceptions import RemoteCallError
from standup_sync.services import functions_client as functions_module
from standup_sync.services.functions_client import FunctionsClient


class _FakeResponse:
    def __init__(self, status_code: int, json_data: Any):
        self.status_code = status_code
        self._json_data = json_data
        self.text = str(json_data)

    def json(self) -> Any:
        if self._json_data is None:
            raise ValueError("no JSON body")
        return self._json_data


class _FakeAsyncClient:
    """
    Minimal stand-in for httpx.AsyncClient.

    Each test sets ``next_response`` (or ``raise_error``) and inspects
    ``last_request`` afterwards.
    """

    last_request: Dict[str, Any] = {}
    next_response: Optional[_FakeResponse] = None
    raise_error: Optional[Exception] = None

    def __init__(self, timeout: float | None = None):
        self._timeout = timeout

    async def __aenter__(self) -> "_FakeAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def post(self, url: str, json: Any = None, headers: Optional[Dict[str, str]] = None) -> _FakeResponse:
        _FakeAsyncClient.last_request = {
            "url": url,
            "json": json,
            "headers": headers,
            "timeout": self._timeout,
        }
        if _FakeAsyncClient.raise_error is not None:
            raise _FakeAsyncClient.raise_error
        return _FakeAsyncClient.next_response


@pytest.fixture(autouse=True)
def _fake_http(monkeypatch):
    _FakeAsyncClient.last_request = {}
    _FakeAsyncClient.next_response = None
    _FakeAsyncClient.raise_error = None
    monkeypatch.setattr(httpx, "AsyncClient", _FakeAsyncClient)


@pytest.mark.asyncio
async def test_call_wraps_payload_and_unwraps_result():
    _FakeAsyncClient.next_response = _FakeResponse(
        HTTPStatus.OK, {"result": {"totalFeedbacks": 0}}
    )
    client = FunctionsClient(base_url="https://functions.example.com/", timeout_seconds=5)

    result = await client.call("getFeedbackSummary", {"employeeId": "emp-1"}, id_token="tok")

    assert result == {"totalFeedbacks": 0}
    req = _FakeAsyncClient.last_request
    assert req["url"] == "https://functions.example.com/getFeedbackSummary"
    assert req["json"] == {"data": {"employeeId": "emp-1"}}
    assert req["headers"]["Authorization"] == "Bearer tok"
    assert req["timeout"] == 5


@pytest.mark.asyncio
async def test_call_without_token_sends_no_authorization():
    _FakeAsyncClient.next_response = _FakeResponse(HTTPStatus.OK, {"result": None})
    client = FunctionsClient(base_url="https://functions.example.com")

    assert await client.call("addAdminRole", {"email": "a@example.com"}) is None
    assert "Authorization" not in _FakeAsyncClient.last_request["headers"]


@pytest.mark.asyncio
async def test_error_envelope_raises_with_provider_message():
    _FakeAsyncClient.next_response = _FakeResponse(
        HTTPStatus.FORBIDDEN,
        {"error": {"status": "PERMISSION_DENIED", "message": "Only admins can add other admins."}},
    )
    client = FunctionsClient(base_url="https://functions.example.com")

    with pytest.raises(RemoteCallError) as excinfo:
        await client.call("addAdminRole", {"email": "a@example.com"})
    assert str(excinfo.value) == "Only admins can add other admins."


@pytest.mark.asyncio
async def test_non_json_failure_raises_generic_message():
    _FakeAsyncClient.next_response = _FakeResponse(HTTPStatus.INTERNAL_SERVER_ERROR, None)
    client = FunctionsClient(base_url="https://functions.example.com")

    with pytest.raises(RemoteCallError) as excinfo:
        await client.call("deleteEmployee", {"uid": "emp-1"})
    assert "status=500" in str(excinfo.value)


@pytest.mark.asyncio
async def test_missing_result_is_an_error():
    _FakeAsyncClient.next_response = _FakeResponse(HTTPStatus.OK, {"data": {}})
    client = FunctionsClient(base_url="https://functions.example.com")

    with pytest.raises(RemoteCallError):
        await client.call("getFeedbackSummary", {})


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    _FakeAsyncClient.raise_error = httpx.ConnectError("connection refused")
    client = FunctionsClient(base_url="https://functions.example.com")

    with pytest.raises(RemoteCallError) as excinfo:
        await client.call("getFeedbackSummary", {})
    assert "Could not reach" in str(excinfo.value)


def test_base_url_is_required():
    with pytest.raises(ValueError):
        FunctionsClient(base_url="")


def test_get_functions_client_requires_configuration(monkeypatch):
    class DummySettings:
        FUNCTIONS_BASE_URL = None
        FUNCTIONS_TIMEOUT_SECONDS = 30.0

    monkeypatch.setattr(functions_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(functions_module, "_functions_client_instance", None)

    with pytest.raises(RemoteCallError):
        functions_module.get_functions_client()
