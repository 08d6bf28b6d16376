import pytest

from qianwen_chat import create_chat_session
from qianwen_chat.providers import create_provider
from qianwen_chat.providers.qianwen_client import QianwenClient
from qianwen_chat.providers.registry import QIANWEN_CONFIG, get_provider_config


class DummySettings:
    qianwen_api_key = "sk-0123456789"
    qianwen_base_url = "https://dashscope.aliyuncs.com/api/v1"
    qianwen_app_id = "app"
    qianwen_endpoint = None
    http_timeout = None
    max_history_messages = 4


def test_create_provider_default(monkeypatch):
    monkeypatch.setattr("qianwen_chat.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, QianwenClient)
    assert provider.name == "qianwen"


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("kimi", DummySettings())


def test_registry_lookup_case_insensitive():
    cfg = get_provider_config("QianWen")
    assert cfg is QIANWEN_CONFIG
    assert cfg.completion_url("abc") == "https://dashscope.aliyuncs.com/api/v1/apps/abc/completion"
    assert cfg.completion_url("abc", "http://proxy/v1/") == "http://proxy/v1/apps/abc/completion"


def test_create_chat_session_uses_config():
    session = create_chat_session(DummySettings())
    assert session.history == ()
    assert session._history.capacity == 4
    assert isinstance(session._client, QianwenClient)


def test_create_chat_session_returns_independent_sessions():
    a = create_chat_session(DummySettings())
    b = create_chat_session(DummySettings())
    assert a is not b
    assert a._history is not b._history
