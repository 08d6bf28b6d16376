import json

import httpx
import pytest

from qianwen_chat.domain.exceptions import (
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    UnauthorizedError,
    UnknownError,
)
from qianwen_chat.domain.models import Message
from qianwen_chat.providers.qianwen_client import QianwenClient


class SettingsStub:
    qianwen_api_key = "sk-test-0123456789"
    qianwen_base_url = "https://dashscope.aliyuncs.com/api/v1"
    qianwen_app_id = "app123"
    qianwen_endpoint = None
    http_timeout = None


class FakeResponse:
    def __init__(self, chunks, status_code=200, text="", error=None):
        self.status_code = status_code
        self._chunks = list(chunks)
        self._text = text
        self._error = error
        self.read_called = False

    def read(self):
        self.read_called = True
        return self._text.encode("utf-8")

    @property
    def text(self):
        return self._text

    def iter_bytes(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


def _install_client(monkeypatch, response, captured):
    class Client:
        def __init__(self, *a, **kw):
            captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def stream(self, method, url, content=None, headers=None, **kw):
            captured.update(method=method, url=url, content=content, headers=headers)
            return StreamContext(response)

    monkeypatch.setattr("httpx.Client", Client)


def test_build_request_headers_and_body():
    qc = QianwenClient(SettingsStub())
    req = qc.build_request([Message(role="user", content="你好")])
    assert req.url == "https://dashscope.aliyuncs.com/api/v1/apps/app123/completion"
    assert req.headers["Authorization"] == "Bearer sk-test-0123456789"
    assert req.headers["Content-Type"] == "application/json"
    assert req.headers["X-DashScope-SSE"] == "enable"
    body = json.loads(req.body.decode("utf-8"))
    assert body == {
        "input": {"messages": [{"role": "user", "content": "你好"}]},
        "parameters": {"incremental_output": True},
    }


def test_endpoint_override():
    class Cfg(SettingsStub):
        qianwen_endpoint = "http://localhost:8080/completion"
        qianwen_app_id = None

    req = QianwenClient(Cfg()).build_request([Message(role="user", content="x")])
    assert req.url == "http://localhost:8080/completion"


def test_missing_app_id_is_invalid_url():
    class Cfg(SettingsStub):
        qianwen_app_id = None

    with pytest.raises(InvalidURLError):
        QianwenClient(Cfg()).build_request([])


def test_malformed_endpoint_is_invalid_url():
    class Cfg(SettingsStub):
        qianwen_endpoint = "not a url"

    with pytest.raises(InvalidURLError) as exc:
        QianwenClient(Cfg()).build_request([])
    assert exc.value.code == "INVALID_URL"


def test_missing_api_key():
    class Cfg(SettingsStub):
        qianwen_api_key = None

    with pytest.raises(UnauthorizedError) as exc:
        QianwenClient(Cfg()).build_request([])
    assert exc.value.code == "MISSING_API_KEY"


def test_serialization_error(monkeypatch):
    qc = QianwenClient(SettingsStub())

    def broken_payload(messages):
        return {"input": {"messages": [object()]}}

    monkeypatch.setattr(qc, "_build_payload", broken_payload)
    with pytest.raises(UnknownError) as exc:
        qc.build_request([])
    assert exc.value.code == "SERIALIZATION_ERROR"


def test_stream_yields_raw_chunks(monkeypatch):
    captured = {}
    _install_client(monkeypatch, FakeResponse([b"data: a\n", b"", b"data: b\n"]), captured)
    qc = QianwenClient(SettingsStub())
    req = qc.build_request([Message(role="user", content="hi")])
    chunks = list(qc.stream(req))
    assert chunks == [b"data: a\n", b"data: b\n"]
    assert captured["method"] == "POST"
    assert captured["url"] == req.url
    assert captured["content"] == req.body
    assert captured["headers"]["X-DashScope-SSE"] == "enable"
    assert "timeout" not in captured["client_kwargs"]


def test_stream_uses_configured_timeout(monkeypatch):
    class Cfg(SettingsStub):
        http_timeout = 12.0

    captured = {}
    _install_client(monkeypatch, FakeResponse([]), captured)
    qc = QianwenClient(Cfg())
    list(qc.stream(qc.build_request([])))
    assert captured["client_kwargs"]["timeout"] == 12.0


@pytest.mark.parametrize("status", [401, 403])
def test_stream_unauthorized(monkeypatch, status):
    response = FakeResponse([], status_code=status, text='{"code":"InvalidApiKey"}')
    _install_client(monkeypatch, response, {})
    qc = QianwenClient(SettingsStub())
    with pytest.raises(UnauthorizedError) as exc:
        list(qc.stream(qc.build_request([])))
    assert exc.value.code == "UNAUTHORIZED"
    assert exc.value.http_status == status
    assert response.read_called


def test_stream_server_error(monkeypatch):
    _install_client(monkeypatch, FakeResponse([], status_code=500, text="boom"), {})
    qc = QianwenClient(SettingsStub())
    with pytest.raises(InvalidResponseError) as exc:
        list(qc.stream(qc.build_request([])))
    assert exc.value.http_status == 500
    assert exc.value.message == "boom"


def test_stream_transport_error_wrapped(monkeypatch):
    cause = httpx.ReadError("connection reset")
    _install_client(monkeypatch, FakeResponse([b"data: a\n"], error=cause), {})
    qc = QianwenClient(SettingsStub())
    received = []
    with pytest.raises(NetworkError) as exc:
        for chunk in qc.stream(qc.build_request([])):
            received.append(chunk)
    assert received == [b"data: a\n"]
    assert exc.value.cause is cause
