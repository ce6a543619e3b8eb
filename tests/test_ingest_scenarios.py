"""End-to-end ingest scenarios against the assembled app.

The store and transform services are faked with an httpx MockTransport and
the metacard bucket with the conftest S3 stub.
"""
import json
from urllib.parse import urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from gateway.config.settings import GatewaySettings
from gateway.metacard_store.repository import S3MetacardStorageAdaptor
from gateway.server import create_app

STORE_URL = "http://localhost:9041/store/"
TRANSFORM_URL = "http://localhost:9090/transform/"
RETRIEVE_URL = "http://localhost:9040/"
STORED_LOCATION = "http://localhost:9041/store/1234"
BUCKET = "metacard-quarantine"

HEADERS = {"Accept-Version": "0.5.0", "Last-Modified": "1984-04-20T08:20:07.793-07:00"}


class FakeServices:
    """Plays the remote store and transform services."""

    def __init__(self, store_status=201, transform_status=202):
        self.store_status = store_status
        self.transform_status = transform_status
        self.store_requests = []
        self.transform_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == STORE_URL:
            request.read()
            self.store_requests.append(request)
            headers = {"Location": STORED_LOCATION} if self.store_status == 201 else {}
            return httpx.Response(self.store_status, headers=headers)
        if url == TRANSFORM_URL:
            self.transform_requests.append(request)
            return httpx.Response(
                self.transform_status,
                json={"id": "1234", "message": "The ID 1234 has been accepted"},
            )
        return httpx.Response(404)


@pytest.fixture
def services():
    return FakeServices()


@pytest.fixture
def settings():
    return GatewaySettings(
        store_endpoint=STORE_URL,
        transform_endpoint=TRANSFORM_URL,
        transform_api_version="0.1.0",
        retrieve_endpoint=RETRIEVE_URL,
        s3_endpoint="http://localhost:9000",
        s3_region="local",
        s3_access_key="admin",
        s3_secret_key="12345678",
        s3_bucket=BUCKET,
    )


@pytest.fixture
def client(settings, services, stub_s3):
    app = create_app(
        settings,
        http=httpx.Client(transport=httpx.MockTransport(services)),
        metacard_adaptor=S3MetacardStorageAdaptor(stub_s3, BUCKET),
    )
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def _ingest(client):
    return client.post(
        "/ingest",
        files={
            "file": ("test_file_name.txt", b"some-content", "text/plain"),
            "metacard": ("metacard.xml", b"metacard-content", "application/xml"),
        },
        data={"correlationId": "000f4e4a"},
        headers=HEADERS,
    )


def test_successful_ingest_requests_transform(client, services, stub_s3):
    resp = _ingest(client)

    assert resp.status_code == 202
    assert len(services.store_requests) == 1
    assert len(services.transform_requests) == 1

    store_request = services.store_requests[0]
    assert b"some-content" in store_request.content
    assert b'name="fileSize"' in store_request.content
    assert b'filename="test_file_name.txt"' in store_request.content

    transform_request = services.transform_requests[0]
    assert transform_request.headers["Accept-Version"] == "0.1.0"
    body = json.loads(transform_request.content)
    assert body["location"] == STORED_LOCATION
    assert body["mimeType"] == "text/plain"
    assert body["metacardLocation"].startswith(RETRIEVE_URL)

    key = body["metacardLocation"][len(RETRIEVE_URL):]
    stored = stub_s3.buckets[BUCKET][key]
    assert stored == {"Body": b"metacard-content", "ContentType": "application/xml"}


def test_metacard_location_resolves_to_stored_metacard(client, services):
    assert _ingest(client).status_code == 202
    metacard_location = json.loads(services.transform_requests[0].content)["metacardLocation"]

    resp = client.get(urlsplit(metacard_location).path)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert resp.content == b"metacard-content"


@pytest.mark.parametrize("status", [400, 401, 403, 500, 501])
def test_store_failure_never_reaches_transform(client, services, stub_s3, status):
    services.store_status = status

    resp = _ingest(client)

    assert resp.status_code >= 500
    assert resp.json()["error"]["code"] == "ingest.store_failed"
    assert services.transform_requests == []
    assert stub_s3.buckets[BUCKET] == {}


def test_transform_rejection_keeps_stored_metacard(client, services, stub_s3):
    services.transform_status = 400

    resp = _ingest(client)

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "ingest.transform_failed"
    assert len(stub_s3.buckets[BUCKET]) == 1


def test_missing_bucket_fails_before_transform(settings, services, stub_s3):
    app = create_app(
        settings,
        http=httpx.Client(transport=httpx.MockTransport(services)),
        metacard_adaptor=S3MetacardStorageAdaptor(stub_s3, "no-such-bucket"),
    )
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = _ingest(client)

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "ingest.metacard_store_failed"
    assert len(services.store_requests) == 1
    assert services.transform_requests == []


def test_unknown_metacard_is_server_error(client):
    resp = client.get("/0123456789abcdef0123456789abcdef")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "metacard.not_found"


def test_missing_metacard_part_is_rejected_without_calls(client, services):
    resp = client.post(
        "/ingest",
        files={"file": ("test_file_name.txt", b"some-content", "text/plain")},
        data={"correlationId": "000f4e4a"},
        headers=HEADERS,
    )

    assert resp.status_code == 400
    assert services.store_requests == []
    assert services.transform_requests == []
