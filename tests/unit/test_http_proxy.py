"""Tests for claiming requests/httpx traffic while intercepting."""

import httpx
import pytest
import requests

from wirestub import (
    CompletionRecorder,
    HTTPXTransport,
    HttpClient,
    NetworkError,
    Request,
    ResponseMeta,
    StubRegistry,
    Success,
    UnexpectedValuesError,
    http_proxy,
    intercepting,
)


@pytest.fixture
def patched_registry():
    with intercepting(StubRegistry()) as registry:
        yield registry


class TestHTTPX:
    def test_stub_becomes_httpx_response(self, patched_registry):
        patched_registry.set_stub(
            body=b'{"ok": true}',
            response_meta={"status": 200, "headers": {"content-type": "application/json"}},
        )

        with httpx.Client() as client:
            response = client.get("http://any-url.test/items")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert response.headers["content-type"] == "application/json"
        assert str(response.request.url) == "http://any-url.test/items"

    def test_stubbed_error_is_raised(self, patched_registry):
        error = NetworkError("any error")
        patched_registry.set_stub(error=error)

        with httpx.Client() as client:
            with pytest.raises(NetworkError) as excinfo:
                client.get("http://any-url.test")

        assert excinfo.value is error

    def test_observer_receives_converted_request(self, patched_registry):
        observed = []
        patched_registry.observe_requests(observed.append)

        with httpx.Client() as client:
            with pytest.raises(UnexpectedValuesError):
                client.post(
                    "http://any-url.test/upload",
                    content=b"payload",
                    headers={"X-Trace": "t-1"},
                )

        assert len(observed) == 1
        assert observed[0].method == "POST"
        assert observed[0].url == "http://any-url.test/upload"
        assert observed[0].body == b"payload"
        assert observed[0].header("x-trace") == "t-1"

    @pytest.mark.asyncio
    async def test_async_client_is_claimed(self, patched_registry):
        patched_registry.set_stub(body=b"AB", response_meta={"status": 202})

        async with httpx.AsyncClient() as client:
            response = await client.get("http://any-url.test")

        assert response.status_code == 202
        assert response.content == b"AB"

    def test_malformed_metadata_is_unexpected_values(self, patched_registry):
        patched_registry.set_stub(body=b"AB", response_meta={"status": "garbage"})

        with httpx.Client() as client:
            with pytest.raises(UnexpectedValuesError):
                client.get("http://any-url.test")


class TestRequests:
    def test_stub_becomes_requests_response(self, patched_registry):
        patched_registry.set_stub(
            body=b"hello",
            response_meta={"status": 200, "headers": {"Content-Type": "text/plain; charset=utf-8"}},
        )

        response = requests.get("http://any-url.test/greeting")

        assert response.status_code == 200
        assert response.text == "hello"
        assert response.headers["content-type"] == "text/plain; charset=utf-8"
        assert response.url == "http://any-url.test/greeting"
        assert list(response.iter_content(chunk_size=2)) == [b"he", b"ll", b"o"]

    def test_stubbed_error_is_raised(self, patched_registry):
        error = NetworkError("any error")
        patched_registry.set_stub(error=error)

        with pytest.raises(NetworkError) as excinfo:
            requests.get("http://any-url.test")

        assert excinfo.value is error

    def test_empty_stub_raises_unexpected_values(self, patched_registry):
        patched_registry.set_stub()

        with pytest.raises(UnexpectedValuesError):
            requests.get("http://any-url.test")

    def test_observer_receives_converted_request(self, patched_registry):
        observed = []
        patched_registry.observe_requests(observed.append)

        with pytest.raises(UnexpectedValuesError):
            requests.post("http://any-url.test/form", data=b"payload")

        assert len(observed) == 1
        assert observed[0].method == "POST"
        assert observed[0].url == "http://any-url.test/form"
        assert observed[0].body == b"payload"


class TestProductionClientUnderInterception:
    def test_httpx_transport_is_served_from_the_stub(self, patched_registry, settings):
        patched_registry.set_stub(body=b"AB", response_meta={"status": 200})
        recorder = CompletionRecorder(settings)

        transport = HTTPXTransport(settings=settings)
        with HttpClient(transport, settings=settings) as client:
            client.load(Request("GET", "http://any-url.test/"), recorder)
            result = recorder.wait()
        transport.close()

        assert isinstance(result, Success)
        assert result.body == b"AB"
        assert result.meta.status_code == 200

    def test_httpx_transport_passes_configured_error_through(self, patched_registry, settings):
        error = NetworkError("any error")
        patched_registry.set_stub(error=error)
        recorder = CompletionRecorder(settings)

        transport = HTTPXTransport(settings=settings)
        with HttpClient(transport, settings=settings) as client:
            client.load(Request("GET", "http://any-url.test/"), recorder)
            result = recorder.wait()
        transport.close()

        assert result.error is error


def test_http_proxy_restores_send_methods():
    original_send = httpx.Client.send
    original_requests_send = requests.Session.send
    registry = StubRegistry()

    with http_proxy(registry):
        registry.set_stub(body=b"AB", response_meta=ResponseMeta(status_code=200))
        assert requests.get("http://any-url.test").content == b"AB"

    assert httpx.Client.send is original_send
    assert requests.Session.send is original_requests_send


def test_patched_clients_follow_client_conversion_rules():
    with intercepting(StubRegistry()) as registry:
        registry.set_stub(body=b"", response_meta={"status": 204})
        assert requests.get("http://any-url.test").status_code == 204

        registry.set_stub(response_meta={"status": 200})
        with pytest.raises(UnexpectedValuesError) as excinfo:
            requests.get("http://any-url.test")

    assert excinfo.value.has_body is False
    assert excinfo.value.has_meta is True
