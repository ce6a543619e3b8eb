import io

import httpx
import pytest

from gateway.common.errors import StoreError
from gateway.remote.store_client import StoreClient

STORE_URL = "http://store:9041/store/"


def _client(handler) -> StoreClient:
    return StoreClient(httpx.Client(transport=httpx.MockTransport(handler)), STORE_URL)


def test_store_returns_location():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        request.read()
        return httpx.Response(201, headers={"Location": STORE_URL + "1234"})

    location = _client(handler).store(12, "text/plain", io.BytesIO(b"some-content"), "test_file_name.txt")

    assert location == STORE_URL + "1234"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == STORE_URL
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b"some-content" in body
    assert b'filename="test_file_name.txt"' in body
    assert b"Content-Type: text/plain" in body
    assert b'name="fileSize"' in body


@pytest.mark.parametrize("status", [400, 401, 403, 501, 500])
def test_non_success_status_is_store_error(status):
    client = _client(lambda request: httpx.Response(status))
    with pytest.raises(StoreError, match=str(status)):
        client.store(12, "text/plain", io.BytesIO(b"some-content"), "test_file_name.txt")


def test_missing_location_is_store_error():
    client = _client(lambda request: httpx.Response(201))
    with pytest.raises(StoreError, match="no Location"):
        client.store(12, "text/plain", io.BytesIO(b"some-content"), "test_file_name.txt")


def test_transport_failure_is_store_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(StoreError, match="Unable to send"):
        _client(handler).store(12, "text/plain", io.BytesIO(b"some-content"), "test_file_name.txt")
