import httpx
import pytest

from cybooks.exceptions import TransportFailure
from cybooks.services import http_client
from cybooks.services.http_client import CatalogHTTPClient


def _client_with(handler):
    client = CatalogHTTPClient(timeout=2.0, user_agent="cybooks-tests")
    client._client.close()
    client._client = httpx.Client(transport=httpx.MockTransport(handler))
    return client


def test_fetch_returns_body():
    client = _client_with(lambda request: httpx.Response(200, content=b"<ok/>"))
    with client:
        assert client.fetch("http://sru.test/?query=x") == b"<ok/>"


def test_http_error_status_becomes_transport_failure():
    client = _client_with(lambda request: httpx.Response(503, content=b"busy"))
    with pytest.raises(TransportFailure, match="HTTP 503"):
        client.fetch("http://sru.test/?query=x")


def test_connection_error_becomes_transport_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client_with(handler)
    with pytest.raises(TransportFailure, match="unreachable"):
        client.fetch("http://sru.test/?query=x")


def test_global_client_is_reused_and_closed(monkeypatch):
    monkeypatch.setattr(http_client, "_global_client", None)
    first = http_client.get_http_client()
    assert http_client.get_http_client() is first
    http_client.close_http_client()
    assert http_client._global_client is None
