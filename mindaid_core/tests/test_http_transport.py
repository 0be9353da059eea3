import httpx
import pytest

from mindaid_core.domain.exceptions import ApiError, NetworkError, RateLimitError
from mindaid_core.domain.models import ChatTurn
from mindaid_core.providers import create_transport
from mindaid_core.providers.http_transport import HttpChatTransport


class SettingsStub:
    chat_url = "https://example.supabase.co/functions/v1/chat"
    chat_api_key = "pk-test"
    http_timeout = 1.0


class FakeResponse:
    def __init__(self, status_code=200, chunks=(), text="", error=None):
        self.status_code = status_code
        self._chunks = list(chunks)
        self.text = text
        self._error = error
        self.closed = False

    def read(self):
        return self.text.encode("utf-8")

    def iter_bytes(self):
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self):
        self.closed = True


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        return False


def _patch_client(monkeypatch, response=None, stream_error=None, captured=None):
    class Client:
        def __init__(self, *a, **kw):
            if captured is not None:
                captured["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, *a, **kw):
            raise AssertionError("post should not be called for streaming")

        def stream(self, method, url, json=None, headers=None, **_):
            if captured is not None:
                captured.update(method=method, url=url, json=json, headers=headers)
            if stream_error is not None:
                raise stream_error
            return StreamContext(response)

    monkeypatch.setattr("httpx.Client", Client)


def test_open_stream_sends_history_and_yields_raw_chunks(monkeypatch):
    captured = {}
    resp = FakeResponse(chunks=[b"data: {", b"}\n", b""])
    _patch_client(monkeypatch, response=resp, captured=captured)

    transport = HttpChatTransport(SettingsStub())
    turns = [ChatTurn(role="assistant", content="Hello!"), ChatTurn(role="user", content="hi")]
    with transport.open_stream(turns) as stream:
        chunks = list(stream.iter_bytes())

    assert chunks == [b"data: {", b"}\n"]
    assert captured["method"] == "POST"
    assert captured["url"] == SettingsStub.chat_url
    assert captured["json"] == {
        "messages": [{"role": "assistant", "content": "Hello!"}, {"role": "user", "content": "hi"}]
    }
    assert captured["headers"]["Authorization"] == "Bearer pk-test"
    assert captured["client_kwargs"]["timeout"] == 1.0


def test_no_authorization_header_without_key(monkeypatch):
    captured = {}
    _patch_client(monkeypatch, response=FakeResponse(), captured=captured)

    class NoKey(SettingsStub):
        chat_api_key = None

    with HttpChatTransport(NoKey()).open_stream([]) as stream:
        list(stream.iter_bytes())
    assert "Authorization" not in captured["headers"]


@pytest.mark.parametrize(
    "status, exc_type, code",
    [
        (429, RateLimitError, "RATE_LIMIT"),
        (500, ApiError, "API_ERROR"),
        (204, ApiError, "EMPTY_BODY"),
        (302, ApiError, "API_ERROR"),
        (304, ApiError, "API_ERROR"),
        (101, ApiError, "API_ERROR"),
    ],
)
def test_bad_status_raises(monkeypatch, status, exc_type, code):
    _patch_client(monkeypatch, response=FakeResponse(status_code=status, text="oops"))
    with pytest.raises(exc_type) as exc_info:
        with HttpChatTransport(SettingsStub()).open_stream([]):
            pass
    assert exc_info.value.code == code
    assert exc_info.value.http_status == status


def test_connect_error_becomes_network_error(monkeypatch):
    _patch_client(monkeypatch, stream_error=httpx.ConnectError("refused"))
    with pytest.raises(NetworkError):
        with HttpChatTransport(SettingsStub()).open_stream([]):
            pass


def test_read_error_mid_stream_becomes_network_error(monkeypatch):
    resp = FakeResponse(chunks=[b"data: x\n"], error=httpx.ReadError("reset"))
    _patch_client(monkeypatch, response=resp)
    received = []
    with pytest.raises(NetworkError):
        with HttpChatTransport(SettingsStub()).open_stream([]) as stream:
            for chunk in stream.iter_bytes():
                received.append(chunk)
    assert received == [b"data: x\n"]


def test_close_closes_response(monkeypatch):
    resp = FakeResponse()
    _patch_client(monkeypatch, response=resp)
    with HttpChatTransport(SettingsStub()).open_stream([]) as stream:
        stream.close()
    assert resp.closed


def test_create_transport_uses_given_settings():
    transport = create_transport(SettingsStub())
    assert isinstance(transport, HttpChatTransport)
    assert transport.name == "http"


def test_redirect_response_fails_stream_once(monkeypatch):
    from fakes import FakeNotifier, FakeStore
    from mindaid_core.domain.models import ConversationLog, ConversationMessage
    from mindaid_core.streaming import StreamConsumer, StreamState

    resp = FakeResponse(status_code=302, chunks=[b"<html>moved</html>"], text="<html>moved</html>")
    _patch_client(monkeypatch, response=resp)
    store = FakeStore()
    notifier = FakeNotifier()
    consumer = StreamConsumer(
        transport=HttpChatTransport(SettingsStub()),
        store=store,
        notifier=notifier,
        session_id="s1",
        error_message="Failed to get response. Please try again.",
    )
    log = ConversationLog(messages=(ConversationMessage(id="u1", role="user", content="hi"),))
    result = consumer.run(log)

    assert result.state is StreamState.FAILED
    assert result.error.http_status == 302
    assert notifier.messages == ["Failed to get response. Please try again."]
    assert store.appended == []
